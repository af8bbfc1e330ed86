"""
treelox - a tree-walking interpreter for a small Lox-style scripting language.

This module provides:
- Lexer: Tokenizes source code
- Parser: Builds statements from tokens
- Interpreter: Executes statements against persistent variable scopes

Usage:
    from treelox import tokenize, parse, interpret

    tokens = tokenize('var a = 1; a = a + 1; print a;')
    statements = parse(tokens)
    interpret(statements)           # prints 2

Or, keeping one interpreter across inputs (as the REPL does):
    from treelox import Interpreter, StreamReporter, run_source

    interpreter = Interpreter(reporters=[StreamReporter()])
    run_source('var a = 1;', interpreter)
    run_source('print a;', interpreter)
"""

from typing import Iterable, List, Optional

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("treelox")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .cursor import Cursor

from .lexer import (
    Lexer,
    scan,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    AstNode,
    AstVisitor,
    Operator,
    OperatorType,
    # Expressions
    Expression,
    Assign,
    Binary,
    Grouping,
    Literal,
    Unary,
    Variable,
    # Statements
    Statement,
    Block,
    ExpressionStatement,
    Print,
    VariableDeclaration,
    If,
    While,
    # Printing
    format_source,
    dump_ast,
    print_ast,
)

from .values import (
    Value,
    ValueType,
    bool_val,
    number_val,
    string_val,
    nil_val,
    NIL,
)

from .errors import (
    LoxError,
    LexerError,
    ParserError,
    LoxRuntimeError,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .runtime import (
    Environment,
    Interpreter,
    ErrorReporter,
    DiagnosticReporter,
    StreamReporter,
)


def interpret(statements: Iterable[Statement], reporters: Iterable = (),
              interpreter: Optional[Interpreter] = None) -> None:
    """
    Execute statements, reporting runtime errors to the given reporters.

    Args:
        statements: Parsed statements
        reporters: Extra reporters, registered only for this call
        interpreter: Interpreter whose state to use; a fresh one if None
    """
    if interpreter is None:
        Interpreter(reporters).interpret(statements)
        return

    registered = list(interpreter.reporters)
    interpreter.reporters.extend(reporters)
    try:
        interpreter.interpret(statements)
    finally:
        interpreter.reporters = registered


def run_source(source: str, interpreter: Interpreter, filename: Optional[str] = None,
               max_errors: int = 20) -> bool:
    """
    Lex, parse and run one input unit (a file or a REPL line).

    Lexer and parser errors go to the interpreter's reporters and stop the
    unit before anything runs.

    Returns:
        False if lexing or parsing failed, True otherwise
    """
    interpreter.set_source(source)

    tokens: List[Token] = []
    lex_errors: List[LexerError] = []
    for result in scan(source, filename):
        if isinstance(result, LexerError):
            lex_errors.append(result)
        else:
            tokens.append(result)
    for error in lex_errors:
        interpreter.report(error)
    if lex_errors:
        return False

    parser = Parser(tokens, source, max_errors)
    statements, parse_errors = parser.parse_recovering()
    for error in parse_errors:
        interpreter.report(error)
    if parse_errors:
        return False

    interpreter.interpret(statements)
    return True


__all__ = [
    "__version__",
    # Tokens
    "Token",
    "TokenType",
    "SourceLocation",
    "SourceSpan",
    "KEYWORDS",
    # Lexer
    "Cursor",
    "Lexer",
    "scan",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    # AST
    "AstNode",
    "AstVisitor",
    "Operator",
    "OperatorType",
    "Expression",
    "Assign",
    "Binary",
    "Grouping",
    "Literal",
    "Unary",
    "Variable",
    "Statement",
    "Block",
    "ExpressionStatement",
    "Print",
    "VariableDeclaration",
    "If",
    "While",
    "format_source",
    "dump_ast",
    "print_ast",
    # Values
    "Value",
    "ValueType",
    "bool_val",
    "number_val",
    "string_val",
    "nil_val",
    "NIL",
    # Errors
    "LoxError",
    "LexerError",
    "ParserError",
    "LoxRuntimeError",
    "Diagnostic",
    "DiagnosticCollector",
    "ErrorSeverity",
    # Runtime
    "Environment",
    "Interpreter",
    "ErrorReporter",
    "DiagnosticReporter",
    "StreamReporter",
    "interpret",
    "run_source",
]
