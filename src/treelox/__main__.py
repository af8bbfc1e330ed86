#!/usr/bin/env python3
"""
CLI for the treelox interpreter.

Usage:
    treelox [SCRIPT] [--tokens | --ast] [--config FILE] [--verbose]
    python -m treelox [SCRIPT] ...

With no script, starts an interactive prompt. Every line is run against
the same interpreter, so variables persist between lines.

Examples:
    # Run a script
    treelox examples/fib.lox

    # Show the tokens or the parsed tree instead of running
    treelox examples/fib.lox --tokens
    treelox examples/fib.lox --ast

    # Interactive session with settings from a YAML file
    treelox --config treelox.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, InterpreterConfig, load_config
from .log import setup_logging

logger = logging.getLogger("treelox.cli")


def cmd_tokens(source: str, filename: str, config: InterpreterConfig) -> int:
    """Print each token (or lexer error) on its own line."""
    from . import scan
    from .errors import LexerError

    failed = False
    for result in scan(source, filename):
        if isinstance(result, LexerError):
            print(result.diagnostic.format(config.show_source), file=sys.stderr)
            failed = True
        else:
            print(f"{result.line}:{result.column}\t{result}\t{result.lexeme!r}")
    return 1 if failed else 0


def cmd_ast(source: str, filename: str, config: InterpreterConfig) -> int:
    """Print the parsed statement tree."""
    from . import tokenize, dump_ast
    from .errors import LexerError
    from .parser import Parser

    try:
        tokens = tokenize(source, filename)
    except LexerError as e:
        print(e.diagnostic.format(config.show_source), file=sys.stderr)
        return 1

    parser = Parser(tokens, source, config.max_errors)
    statements, errors = parser.parse_recovering()
    if statements:
        print(dump_ast(statements))
    if errors:
        print(parser.diagnostics.format_all(config.show_source), file=sys.stderr)
        return 1
    return 0


def cmd_run(source: str, filename: str, config: InterpreterConfig) -> int:
    """Run a whole script; exit status 1 if anything failed."""
    from . import run_source
    from .runtime import Interpreter, StreamReporter, DiagnosticReporter

    reporter = DiagnosticReporter()
    interpreter = Interpreter(reporters=[StreamReporter(show_source=config.show_source), reporter])
    ok = run_source(source, interpreter, filename, config.max_errors)
    if not ok or reporter.collector.has_errors:
        logger.info("%s: %d error(s)", filename, reporter.collector.error_count)
        return 1
    return 0


def run_prompt(config: InterpreterConfig) -> int:
    """Read-eval-print loop over stdin; exits on end of input."""
    from . import run_source
    from .runtime import Interpreter, StreamReporter

    interpreter = Interpreter(reporters=[StreamReporter(show_source=config.show_source)])

    sys.stdout.write(config.prompt)
    sys.stdout.flush()
    for line in sys.stdin:
        run_source(line.rstrip('\n'), interpreter, max_errors=config.max_errors)
        sys.stdout.write(config.prompt)
        sys.stdout.flush()

    sys.stdout.write("\n")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='treelox',
        description='Tree-walking interpreter for a small Lox-style language',
    )
    parser.add_argument('script', nargs='?', help='Source file to run (omit for a prompt)')

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--tokens', action='store_true',
                      help='Print the tokens of SCRIPT instead of running it')
    mode.add_argument('--ast', action='store_true',
                      help='Print the parsed tree of SCRIPT instead of running it')

    parser.add_argument('-c', '--config', metavar='FILE',
                        help='YAML configuration file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging("DEBUG" if args.verbose else config.log_level, config.log_file)

    if args.script is None:
        if args.tokens or args.ast:
            parser.error("--tokens and --ast need a SCRIPT")
        return run_prompt(config)

    source_path = Path(args.script)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return 1

    source = source_path.read_text(encoding="utf-8")
    filename = str(source_path)
    logger.debug("running %s (%d characters)", filename, len(source))

    if args.tokens:
        return cmd_tokens(source, filename, config)
    if args.ast:
        return cmd_ast(source, filename, config)
    return cmd_run(source, filename, config)


if __name__ == '__main__':
    sys.exit(main())
