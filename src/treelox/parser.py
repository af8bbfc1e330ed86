"""
Recursive descent parser for treelox.

Converts a token stream into a list of statements. Binary expressions are
parsed by precedence climbing over a single table; assignment sits above
them and is right-associative.

Declarations that fail to parse are recorded and skipped: the parser
resynchronizes at the next statement boundary so that every error in the
input is found in one pass.
"""

import logging
from typing import List, Optional, Tuple

from .tokens import Token, TokenType, SourceSpan, STATEMENT_KEYWORDS
from .ast import (
    Operator,
    # Expressions
    Expression, Assign, Binary, Grouping, Literal, Unary, Variable,
    # Statements
    Statement, Block, ExpressionStatement, Print, VariableDeclaration, If, While,
)
from .values import bool_val, number_val, string_val, NIL
from .errors import (
    ParserError,
    point_span,
    error_unexpected_end_of_tokens,
    error_invalid_primary,
    error_invalid_assignment_target,
    error_missing_expected_token,
    error_unexpected_language_component,
    DiagnosticCollector,
)

logger = logging.getLogger(__name__)


class Parser:
    """
    Recursive descent parser for treelox.

    Usage:
        parser = Parser(tokens)
        statements = parser.parse()     # raises the first ParserError

    Or, to keep going past errors:
        statements, errors = Parser(tokens).parse_recovering()

    Expression precedence, lowest to highest:
        assignment (right-associative, variable targets only)
        == !=
        < <= > >=
        + -
        * /
        unary ! - (nestable)
        primary
    """

    # Operator precedence levels (higher = tighter binding); all left-associative
    PRECEDENCE = {
        TokenType.EQUAL_EQUAL: 1,
        TokenType.BANG_EQUAL: 1,
        TokenType.LESS: 2,
        TokenType.LESS_EQUAL: 2,
        TokenType.GREATER: 2,
        TokenType.GREATER_EQUAL: 2,
        TokenType.PLUS: 3,
        TokenType.MINUS: 3,
        TokenType.STAR: 4,
        TokenType.SLASH: 4,
    }

    UNARY_OPERATORS = (TokenType.BANG, TokenType.MINUS)

    def __init__(self, tokens: List[Token], source: Optional[str] = None, max_errors: int = 20):
        self.tokens = list(tokens)
        self.source = source    # Original source, used for diagnostic source lines
        self.pos = 0
        self.errors: List[ParserError] = []
        self.diagnostics = DiagnosticCollector(max_errors)
        self._lines = source.split('\n') if source is not None else None

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Optional[Token]:
        """Get current token, or None when all tokens are consumed."""
        if self.pos >= len(self.tokens):
            return None
        return self.tokens[self.pos]

    def _previous(self) -> Optional[Token]:
        if self.pos == 0:
            return None
        return self.tokens[self.pos - 1]

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        token = self._current()
        return token is not None and token.type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        token = self._current()
        return token is not None and token.type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if token is None:
            raise error_unexpected_end_of_tokens("more input", self._end_span())
        self.pos += 1
        return token

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._check_any(*token_types):
            return self._advance()
        return None

    def _consume(self, token_type: TokenType, message: str) -> Token:
        """Consume token of expected type, or raise E105."""
        if self._check(token_type):
            return self._advance()
        found = self._current()
        span = found.span if found is not None else self._end_span()
        raise error_missing_expected_token(token_type, message, span, found)

    def _end_span(self) -> SourceSpan:
        """Span just past the last token, for errors at end of input."""
        if not self.tokens:
            return point_span(1, 0)
        end = self.tokens[-1].span.end
        return point_span(end.line, end.column + 1, end.offset + 1, end.filename)

    def _record(self, error: ParserError) -> None:
        """Remember a failed declaration and attach its source line."""
        if error.diagnostic.source_line is None and self._lines is not None:
            line = error.diagnostic.span.start.line
            if 1 <= line <= len(self._lines):
                error.diagnostic.source_line = self._lines[line - 1].rstrip('\r')
        logger.debug("parse error %s: %s", error.code, error.diagnostic.message)
        self.errors.append(error)
        self.diagnostics.add_error(error)

    def synchronize(self, start: Optional[int] = None) -> None:
        """
        Discard tokens up to the next statement boundary.

        Stops once the previous token is ';' or the current token starts a
        statement. If the failed declaration began at `start` and consumed
        nothing, one token is skipped first so recovery always progresses.
        """
        if self._is_at_end():
            return
        if start is None or self.pos == start:
            self.pos += 1
        while not self._is_at_end():
            previous = self._previous()
            if previous is not None and previous.type == TokenType.SEMICOLON:
                return
            if self._current().type in STATEMENT_KEYWORDS:
                return
            self.pos += 1

    # =========================================================================
    # Entry Points
    # =========================================================================

    def parse_recovering(self) -> Tuple[List[Statement], List[ParserError]]:
        """Parse every declaration, returning the statements that parsed and all errors."""
        statements = []
        while not self._is_at_end():
            start = self.pos
            try:
                statements.append(self._parse_declaration())
            except ParserError as error:
                self._record(error)
                if self.diagnostics.should_stop:
                    break
                self.synchronize(start)
        return statements, list(self.errors)

    def parse(self) -> List[Statement]:
        """
        Parse the whole token stream.

        Raises:
            ParserError: The first error, after recovery has collected the rest
        """
        statements, errors = self.parse_recovering()
        if errors:
            raise errors[0]
        return statements

    # =========================================================================
    # Declarations and Statements
    # =========================================================================

    def _parse_declaration(self) -> Statement:
        if self._match(TokenType.VAR):
            return self._parse_var_declaration()
        return self._parse_statement()

    def _parse_var_declaration(self) -> VariableDeclaration:
        """Parse the rest of: var <name> [= <expression>] ;"""
        name = self._consume(TokenType.IDENTIFIER, "expected variable name")
        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "expected ';' after variable declaration")
        return VariableDeclaration(name, initializer)

    def _parse_statement(self) -> Statement:
        token = self._current()
        if token is None:
            raise error_unexpected_end_of_tokens("a statement", self._end_span())

        if token.type == TokenType.PRINT:
            return self._parse_print_statement()
        if token.type == TokenType.LEFT_BRACE:
            return self._parse_block()
        if token.type == TokenType.IF:
            return self._parse_if_statement()
        if token.type == TokenType.WHILE:
            return self._parse_while_statement()
        if token.type == TokenType.FOR:
            return self._parse_for_statement()
        return self._parse_expression_statement()

    def _parse_print_statement(self) -> Print:
        self._consume(TokenType.PRINT, "expected 'print'")
        expression = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "expected ';' after value")
        return Print(expression)

    def _parse_block(self) -> Block:
        self._consume(TokenType.LEFT_BRACE, "expected '{' at start of block")
        statements = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            statements.append(self._parse_declaration())
        self._consume(TokenType.RIGHT_BRACE, "expected '}' at end of block")
        return Block(statements)

    def _parse_condition(self, keyword: str) -> Expression:
        """Parse a parenthesized condition: ( <expression> )"""
        self._consume(TokenType.LEFT_PAREN, f"expected '(' after '{keyword}'")
        condition = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, f"expected ')' after {keyword} condition")
        return condition

    def _parse_if_statement(self) -> If:
        self._consume(TokenType.IF, "expected 'if'")
        condition = self._parse_condition("if")
        then_branch = self._parse_statement()
        # Innermost if claims the else
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_statement()
        return If(condition, then_branch, else_branch)

    def _parse_while_statement(self) -> While:
        self._consume(TokenType.WHILE, "expected 'while'")
        condition = self._parse_condition("while")
        body = self._parse_statement()
        return While(condition, body)

    def _parse_for_statement(self) -> Statement:
        """
        Parse a for loop and desugar it.

        for (init; cond; incr) body  becomes
            { init; while (cond) { body; incr; } }

        A missing condition is `true`; a missing initializer leaves the
        outer block with only the loop.
        """
        for_token = self._consume(TokenType.FOR, "expected 'for'")
        self._consume(TokenType.LEFT_PAREN, "expected '(' after 'for'")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._parse_var_declaration()
        else:
            initializer = self._parse_expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "expected ';' after loop condition")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "expected ')' after for clauses")

        body = self._parse_statement()

        if increment is not None:
            body = self._append_increment(body, increment, for_token)

        if condition is None:
            condition = Literal(bool_val(True))

        statements: List[Statement] = []
        if initializer is not None:
            statements.append(initializer)
        statements.append(While(condition, body))
        return Block(statements)

    def _append_increment(self, body: Statement, increment: Expression, for_token: Token) -> Statement:
        """Run the increment after every pass through the loop body."""
        step = ExpressionStatement(increment)
        if isinstance(body, Block):
            return Block(body.statements + [step])
        if isinstance(body, (ExpressionStatement, Print)):
            return Block([body, step])
        component = "if statement" if isinstance(body, If) else "while statement"
        raise error_unexpected_language_component(component, for_token.span)

    def _parse_expression_statement(self) -> ExpressionStatement:
        expression = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "expected ';' after expression")
        return ExpressionStatement(expression)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expression:
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """Parse assignment (right-associative)."""
        target = self._parse_binary_expr(1)

        equals = self._match(TokenType.EQUAL)
        if equals is None:
            return target

        value = self._parse_assignment()
        if isinstance(target, Variable):
            return Assign(target.name, value)
        raise error_invalid_assignment_target(equals)

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            if op_token is None:
                break
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator
            right = self._parse_binary_expr(precedence + 1)
            left = Binary(left, Operator.from_token(op_token), right)

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (! -)."""
        op_token = self._match(*self.UNARY_OPERATORS)
        if op_token is not None:
            operand = self._parse_unary_expr()
            return Unary(Operator.from_token(op_token), operand)
        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        """Parse literals, parenthesized expressions and variable references."""
        token = self._current()
        if token is None:
            raise error_unexpected_end_of_tokens("expression", self._end_span())
        self._advance()

        if token.type == TokenType.NUMBER:
            return Literal(number_val(token.value))
        if token.type == TokenType.STRING:
            return Literal(string_val(token.value))
        if token.type == TokenType.TRUE:
            return Literal(bool_val(True))
        if token.type == TokenType.FALSE:
            return Literal(bool_val(False))
        if token.type == TokenType.NIL:
            return Literal(NIL)
        if token.type == TokenType.IDENTIFIER:
            return Variable(token)
        if token.type == TokenType.LEFT_PAREN:
            inner = self._parse_expression()
            self._consume(TokenType.RIGHT_PAREN, "expected ')' after expression")
            return Grouping(inner)

        raise error_invalid_primary(token)


def parse(tokens: List[Token], source: Optional[str] = None) -> List[Statement]:
    """
    Convenience function to parse tokens into a list of statements.

    Args:
        tokens: List of tokens from the lexer
        source: Optional original source, used to show source lines in errors

    Returns:
        Parsed statements

    Raises:
        ParserError: The first error in the input
    """
    return Parser(tokens, source).parse()
