"""
Lexer for treelox.

Converts source text into a stream of tokens for the parser.
Supports:
- Single and double character punctuation/operators (maximal munch)
- Line comments (//)
- String literals (may span lines, no escape sequences)
- Number literals (digits with an optional fractional part)
- Identifiers and the sixteen reserved keywords

Errors are per token: a bad character or literal produces a LexerError for
that position and scanning resumes right after it.
"""

import logging
from typing import Iterator, List, Optional, Union

from .cursor import Cursor
from .tokens import Token, TokenType, SourceLocation, SourceSpan, KEYWORDS
from .errors import (
    LexerError,
    error_unexpected_character,
    error_unterminated_string,
    error_float_parse,
)

logger = logging.getLogger(__name__)

ScanResult = Union[Token, LexerError]

SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
}

# First char -> (type when followed by '=', type otherwise)
EQUAL_SUFFIX_TOKENS = {
    '!': (TokenType.BANG_EQUAL, TokenType.BANG),
    '=': (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    '<': (TokenType.LESS_EQUAL, TokenType.LESS),
    '>': (TokenType.GREATER_EQUAL, TokenType.GREATER),
}

IGNORED = (TokenType.WHITESPACE, TokenType.COMMENT)


def _is_identifier_start(ch: str) -> bool:
    return (ch.isascii() and ch.isalpha()) or ch == '_'


def _is_ascii_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


class Lexer:
    """
    Tokenizer for treelox source text.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()       # raises the first LexerError

    Or, keeping every per-token result:
        for result in Lexer(source_code):
            if isinstance(result, LexerError):
                report(result)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.cursor = Cursor(source)
        self.start = 0          # Offset where the current lexeme begins
        self.line = 1           # Current line (1-indexed)
        self.column = 0         # Column of the last consumed character
        self._lines: Optional[List[str]] = None

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = [line.rstrip('\r') for line in self.source.split('\n')]
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def is_at_end(self) -> bool:
        return self.cursor.is_at_end()

    def _location(self) -> SourceLocation:
        """Location of the last consumed character."""
        return SourceLocation(self.line, self.column, max(0, self.cursor.position - 1), self.filename)

    def _next_location(self) -> SourceLocation:
        """Location of the character about to be consumed."""
        return SourceLocation(self.line, self.column + 1, self.cursor.position, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to the last consumed character."""
        return SourceSpan(start, self._location())

    def _advance(self) -> Optional[str]:
        """Consume the next character and do the column bookkeeping."""
        ch = self.cursor.advance()
        if ch is not None:
            self.column += 1
        return ch

    def _newline(self) -> None:
        self.line += 1
        self.column = 0

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self.cursor.peek() == expected:
            self._advance()
            return True
        return False

    def _lexeme(self) -> str:
        lexeme = self.cursor.substring(self.start, self.cursor.position)
        if lexeme is None:
            raise ValueError(f"invalid lexeme bounds {self.start}..{self.cursor.position}")
        return lexeme

    def _make_token(self, token_type: TokenType, value, start: SourceLocation) -> Token:
        return Token(token_type, value, self._lexeme(), self._span(start))

    def _skip_comment(self) -> None:
        """Skip a line comment up to (not including) the newline."""
        while self.cursor.peek() != '\n' and not self.is_at_end():
            self._advance()

    def _scan_string(self, start: SourceLocation) -> Token:
        """Scan a string literal; the opening quote is already consumed."""
        while self.cursor.peek() != '"' and not self.is_at_end():
            if self._advance() == '\n':
                self._newline()

        if self.is_at_end():
            raise error_unterminated_string(
                self._span(start),
                self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        value = self._lexeme()[1:-1]
        return self._make_token(TokenType.STRING, value, start)

    def _consume_digits(self) -> None:
        while True:
            ch = self.cursor.peek()
            if ch is None or not ch.isdigit():
                return
            self._advance()

    def _scan_number(self, start: SourceLocation) -> Token:
        """Scan a number literal; the first digit is already consumed."""
        self._consume_digits()

        # A fractional part needs at least one digit after the dot
        if self.cursor.peek() == '.':
            after_dot = self.cursor.peek(1)
            if after_dot is not None and after_dot.isdigit():
                self._advance()  # consume '.'
                self._consume_digits()

        lexeme = self._lexeme()
        try:
            value = float(lexeme)
        except ValueError as e:
            raise error_float_parse(
                lexeme, str(e), self._span(start), self.get_source_line(start.line)
            )
        return self._make_token(TokenType.NUMBER, value, start)

    def _scan_identifier_or_keyword(self, start: SourceLocation) -> Token:
        """Scan an identifier or keyword; the first character is already consumed."""
        while True:
            ch = self.cursor.peek()
            if ch is None or not (ch.isalnum() or ch == '_'):
                break
            self._advance()

        lexeme = self._lexeme()
        token_type = KEYWORDS.get(lexeme)
        if token_type is not None:
            return self._make_token(token_type, None, start)
        return self._make_token(TokenType.IDENTIFIER, lexeme, start)

    def _scan_lexeme(self) -> Optional[Token]:
        """Scan one lexeme; returns None for whitespace and comments."""
        self.start = self.cursor.position
        start = self._next_location()
        ch = self._advance()

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], None, start)

        if ch in EQUAL_SUFFIX_TOKENS:
            with_equal, alone = EQUAL_SUFFIX_TOKENS[ch]
            token_type = with_equal if self._match('=') else alone
            return self._make_token(token_type, None, start)

        if ch == '/':
            if self._match('/'):
                self._skip_comment()
                return None
            return self._make_token(TokenType.SLASH, None, start)

        if ch == '"':
            return self._scan_string(start)

        if _is_ascii_digit(ch):
            return self._scan_number(start)

        if _is_identifier_start(ch):
            return self._scan_identifier_or_keyword(start)

        if ch in ' \r\t':
            return None

        if ch == '\n':
            self._newline()
            return None

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def scan_token(self) -> Optional[Token]:
        """
        Scan the next meaningful token.

        Returns None at end of input. Raises LexerError for a bad token;
        the input it covers is already consumed, so calling again continues
        with the rest of the source.
        """
        while not self.is_at_end():
            token = self._scan_lexeme()
            if token is not None:
                logger.debug("scanned %s at %d:%d", token, token.line, token.column)
                return token
        return None

    def __iter__(self) -> Iterator[ScanResult]:
        """Iterate over per-token results (Token or LexerError)."""
        while True:
            try:
                token = self.scan_token()
            except LexerError as error:
                logger.debug("lexer error: %s", error.diagnostic.message)
                yield error
                continue
            if token is None:
                return
            yield token

    def scan_all(self) -> List[ScanResult]:
        """Scan the whole source, keeping errors in place."""
        return list(self)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, raising the first LexerError."""
        tokens = []
        for result in self:
            if isinstance(result, LexerError):
                raise result
            tokens.append(result)
        return tokens


def scan(source: str, filename: Optional[str] = None) -> List[ScanResult]:
    """
    Scan source code into one result per token position.

    Args:
        source: The source code to scan
        filename: Optional filename for error messages

    Returns:
        List of Token or LexerError values, in source order
    """
    return Lexer(source, filename).scan_all()


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Raises:
        LexerError: The first lexical error in the source
    """
    return Lexer(source, filename).tokenize()
