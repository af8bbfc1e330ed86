"""
Position-tracked character cursor used by the lexer.
"""

from typing import Iterator, Optional


class Cursor:
    """
    A single-pass view over a character sequence.

    The needle only moves forward; ``peek``, ``peek_behind`` and
    ``substring`` inspect the text without consuming it.

    Usage:
        cursor = Cursor("var x;")
        ch = cursor.advance()       # 'v'
        cursor.peek()               # 'a'
        cursor.substring(0, 3)      # 'var' (once the needle is past it)
    """

    def __init__(self, source: str):
        self.source = source
        self.needle = 0

    def __len__(self) -> int:
        return len(self.source)

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        ch = self.advance()
        if ch is None:
            raise StopIteration
        return ch

    @property
    def position(self) -> int:
        return self.needle

    def advance(self) -> Optional[str]:
        """Consume and return the character at the needle, or None at end of input."""
        if self.needle >= len(self.source):
            return None
        ch = self.source[self.needle]
        self.needle += 1
        return ch

    def peek(self, n: int = 0) -> Optional[str]:
        """Character n positions ahead of the needle, without consuming it."""
        target = self.needle + n
        if n < 0 or target >= len(self.source):
            return None
        return self.source[target]

    def peek_behind(self, n: int = 1) -> Optional[str]:
        """Character n positions behind the needle, without consuming it."""
        target = self.needle - n
        if n < 0 or target < 0 or target >= len(self.source):
            return None
        return self.source[target]

    def substring(self, start: int, end: int) -> Optional[str]:
        """Text in [start, end), or None if the bounds are invalid."""
        length = len(self.source)
        if start < 0 or start > length or end > length or start > end:
            return None
        return self.source[start:end]

    def is_at_end(self) -> bool:
        return self.needle >= len(self.source)
