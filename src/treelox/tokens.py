"""
Token types for the treelox lexer.

Error code ranges used across the package:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Single-character tokens ---
    LEFT_PAREN = auto()         # (
    RIGHT_PAREN = auto()        # )
    LEFT_BRACE = auto()         # {
    RIGHT_BRACE = auto()        # }
    COMMA = auto()              # ,
    DOT = auto()                # .
    MINUS = auto()              # -
    PLUS = auto()               # +
    SEMICOLON = auto()          # ;
    SLASH = auto()              # /
    STAR = auto()               # *

    # --- One or two character tokens ---
    BANG = auto()               # !
    BANG_EQUAL = auto()         # !=
    EQUAL = auto()              # =
    EQUAL_EQUAL = auto()        # ==
    GREATER = auto()            # >
    GREATER_EQUAL = auto()      # >=
    LESS = auto()               # <
    LESS_EQUAL = auto()         # <=

    # --- Literals ---
    IDENTIFIER = auto()         # user-defined names
    STRING = auto()             # "hello"
    NUMBER = auto()             # 42, 3.14

    # --- Keywords ---
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FUN = auto()
    FOR = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()

    # --- Ignored (consumed inside the lexer, never returned) ---
    COMMENT = auto()
    WHITESPACE = auto()


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code (both ends inclusive)."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer.

    ``line`` and ``column`` report the position of the token's last
    character.
    """
    type: TokenType
    value: Any              # Payload for literals (float, str), None otherwise
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    @property
    def line(self) -> int:
        return self.span.end.line

    @property
    def column(self) -> int:
        return self.span.end.column

    def is_identifier(self) -> bool:
        return self.type == TokenType.IDENTIFIER

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER, TokenType.STRING, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "and": TokenType.AND,
    "class": TokenType.CLASS,
    "else": TokenType.ELSE,
    "false": TokenType.FALSE,
    "for": TokenType.FOR,
    "fun": TokenType.FUN,
    "if": TokenType.IF,
    "nil": TokenType.NIL,
    "or": TokenType.OR,
    "print": TokenType.PRINT,
    "return": TokenType.RETURN,
    "super": TokenType.SUPER,
    "this": TokenType.THIS,
    "true": TokenType.TRUE,
    "var": TokenType.VAR,
    "while": TokenType.WHILE,
}

# Keywords that begin a statement; the parser resynchronizes on these
STATEMENT_KEYWORDS: frozenset[TokenType] = frozenset({
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
})

# Readable spelling of each fixed token, used in diagnostics and printing
TOKEN_SPELLING: dict[TokenType, str] = {
    TokenType.LEFT_PAREN: "(",
    TokenType.RIGHT_PAREN: ")",
    TokenType.LEFT_BRACE: "{",
    TokenType.RIGHT_BRACE: "}",
    TokenType.COMMA: ",",
    TokenType.DOT: ".",
    TokenType.MINUS: "-",
    TokenType.PLUS: "+",
    TokenType.SEMICOLON: ";",
    TokenType.SLASH: "/",
    TokenType.STAR: "*",
    TokenType.BANG: "!",
    TokenType.BANG_EQUAL: "!=",
    TokenType.EQUAL: "=",
    TokenType.EQUAL_EQUAL: "==",
    TokenType.GREATER: ">",
    TokenType.GREATER_EQUAL: ">=",
    TokenType.LESS: "<",
    TokenType.LESS_EQUAL: "<=",
}
TOKEN_SPELLING.update({token_type: word for word, token_type in KEYWORDS.items()})


def describe(token_type: TokenType) -> str:
    """Human-readable name for a token type, e.g. "';'" or "identifier"."""
    spelling = TOKEN_SPELLING.get(token_type)
    if spelling is not None:
        return f"'{spelling}'"
    return token_type.name.lower()
