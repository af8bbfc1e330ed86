"""
Exceptions and diagnostics shared by every pipeline stage.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from .tokens import SourceLocation, SourceSpan, Token, TokenType, describe

if TYPE_CHECKING:
    from .ast import Operator


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        loc = f"{self.span.start}"
        parts.append(f"{loc}: {self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = max(1, self.span.start.column)
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column + 1
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            },
            "hints": self.hints,
        }


class LoxError(Exception):
    """Base exception for user-facing errors."""

    def __init__(self, diagnostic: Diagnostic, **context: Any):
        self.diagnostic = diagnostic
        self.context = context
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def line(self) -> int:
        return self.diagnostic.span.start.line

    @property
    def column(self) -> int:
        return self.diagnostic.span.start.column

    def __getattr__(self, name: str) -> Any:
        # Structured context (character, lexeme, token, operator, ...)
        context = self.__dict__.get("context", {})
        if name in context:
            return context[name]
        raise AttributeError(name)

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(LoxError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(LoxError):
    """Error during parsing (E1xx)."""
    pass


class LoxRuntimeError(LoxError):
    """Error while executing a statement (E4xx)."""
    pass


def point_span(line: int, column: int, offset: int = 0,
               filename: Optional[str] = None) -> SourceSpan:
    """A span covering a single character position."""
    location = SourceLocation(line, column, offset, filename)
    return SourceSpan(location, location)


def _error(code: str, message: str, span: SourceSpan, source_line: Optional[str] = None,
           hints: Optional[List[str]] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = _error("E001", f"unexpected character '{char}'", span, source_line)
    return LexerError(diag, character=char)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = _error(
        "E002", "unterminated string literal", span, source_line,
        hints=["string literals must be closed with a matching '\"'"],
    )
    return LexerError(diag)


def error_float_parse(lexeme: str, reason: str, span: SourceSpan,
                      source_line: str = None) -> LexerError:
    """E003: Numeric literal could not be parsed as a float."""
    diag = _error("E003", f"invalid number literal '{lexeme}': {reason}", span, source_line)
    return LexerError(diag, lexeme=lexeme, reason=reason)


# --- Parser error codes ---

def error_unexpected_end_of_tokens(expected: str, span: SourceSpan) -> ParserError:
    """E101: Ran out of tokens while more were required."""
    diag = _error("E101", f"unexpected end of input, expected {expected}", span)
    return ParserError(diag, expected=None, token=None)


def error_invalid_operator_token(token: Token) -> ParserError:
    """E102: A non-operator token reached operator construction."""
    diag = _error("E102", f"'{token.lexeme}' is not an operator", token.span)
    return ParserError(diag, token=token)


def error_invalid_primary(token: Token) -> ParserError:
    """E103: Token cannot begin an expression."""
    diag = _error("E103", f"expected expression, found {describe(token.type)}", token.span)
    return ParserError(diag, token=token)


def error_invalid_assignment_target(equals: Token) -> ParserError:
    """E104: Left-hand side of '=' is not a variable."""
    diag = _error(
        "E104", "invalid assignment target", equals.span,
        hints=["only a variable name may appear on the left of '='"],
    )
    return ParserError(diag, token=equals)


def error_missing_expected_token(expected: TokenType, message: str, span: SourceSpan,
                                 found: Optional[Token] = None) -> ParserError:
    """E105: A required token was not found."""
    diag = _error("E105", message, span)
    return ParserError(diag, expected=expected, token=found)


def error_unexpected_language_component(component: str, span: SourceSpan) -> ParserError:
    """E106: Statement shape that cannot be desugared."""
    diag = _error(
        "E106", f"unexpected {component} as for-loop body", span,
        hints=["wrap the loop body in '{ }'"],
    )
    return ParserError(diag, component=component)


# --- Runtime error codes ---

def error_variable_already_defined(name: str, token: Token) -> LoxRuntimeError:
    """E401: Name declared twice in one scope."""
    diag = _error("E401", f"variable '{name}' is already defined", token.span)
    return LoxRuntimeError(diag, name=name, token=token)


def error_undefined_variable(name: str, token: Token) -> LoxRuntimeError:
    """E402: Name not found in any enclosing scope."""
    diag = _error("E402", f"undefined variable '{name}'", token.span)
    return LoxRuntimeError(diag, name=name, token=token)


def error_invalid_assign_target(token: Token) -> LoxRuntimeError:
    """E403: Assignment to something that is not an identifier."""
    diag = _error("E403", f"cannot assign a value to {describe(token.type)}", token.span)
    return LoxRuntimeError(diag, token=token)


def error_invalid_operands(operator: "Operator", expected: str = "two numbers") -> LoxRuntimeError:
    """E404: Operand types not accepted by a binary operator."""
    diag = _error(
        "E404", f"invalid operands for '{operator}', expected {expected}",
        point_span(operator.line, operator.column),
    )
    return LoxRuntimeError(diag, operator=operator, expected=expected)


def error_invalid_unary_operator(operator: "Operator") -> LoxRuntimeError:
    """E405: Operator cannot be used in prefix position."""
    diag = _error("E405", f"invalid operator '{operator}'", point_span(operator.line, operator.column))
    return LoxRuntimeError(diag, operator=operator)


def error_invalid_unary_operator_for_value(operator: "Operator", value: Any) -> LoxRuntimeError:
    """E406: Prefix operator not defined for the operand's type."""
    diag = _error(
        "E406", f"invalid operator '{operator}' for value {value}",
        point_span(operator.line, operator.column),
    )
    return LoxRuntimeError(diag, operator=operator, value=value)


class DiagnosticCollector:
    """Collects diagnostics across a run."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: LoxError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def clear(self) -> None:
        self.diagnostics.clear()
        self._error_count = 0

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"{self._error_count} error(s), {self.warning_count} warning(s)")
        elif self.warning_count > 0:
            parts.append(f"{self.warning_count} warning(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
            "warning_count": self.warning_count,
        }
