"""
bytexpr Scanner - Character-level reader for expression source.

There is no token stream: the parser pulls numbers, identifiers and
punctuation straight from the scanner, which skips whitespace between them.
Positions are zero-based character offsets into the source.
"""

import math
from typing import Optional


WHITESPACE = ' \t\r\n'
DIGITS = '0123456789'
IDENT_START = 'abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_'
IDENT_CHARS = IDENT_START + DIGITS


class ScanError(Exception):
    """Error while reading a number or identifier."""
    def __init__(self, message: str, offset: int):
        self.offset = offset
        super().__init__(f"{message} at offset {offset}")


class Scanner:
    """Reads expression source one character at a time."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0

    def current_char(self) -> str:
        """Return current character or empty string at end of input."""
        if self.pos >= len(self.source):
            return ""
        return self.source[self.pos]

    def skip_whitespace(self) -> None:
        """Skip spaces, tabs and newlines."""
        while self.current_char() and self.current_char() in WHITESPACE:
            self.pos += 1

    def at_end(self) -> bool:
        """True once only whitespace is left."""
        self.skip_whitespace()
        return self.pos >= len(self.source)

    def check(self, ch: str) -> bool:
        """Check if the next non-blank character is ch."""
        self.skip_whitespace()
        return self.current_char() == ch

    def match(self, ch: str) -> bool:
        """If the next non-blank character is ch, consume it."""
        if self.check(ch):
            self.pos += 1
            return True
        return False

    def at_number(self) -> bool:
        self.skip_whitespace()
        ch = self.current_char()
        return bool(ch) and ch in DIGITS

    def at_identifier(self) -> bool:
        self.skip_whitespace()
        ch = self.current_char()
        return bool(ch) and ch in IDENT_START

    def read_number(self) -> float:
        """Read a decimal literal: digits, optionally '.' and more digits."""
        self.skip_whitespace()
        start = self.pos
        while self.current_char() and self.current_char() in DIGITS:
            self.pos += 1
        if self.pos == start:
            raise ScanError("Expected number", start)

        if self.current_char() == '.':
            self.pos += 1
            frac_start = self.pos
            while self.current_char() and self.current_char() in DIGITS:
                self.pos += 1
            if self.pos == frac_start:
                raise ScanError("Expected digit after '.'", self.pos)

        value = float(self.source[start:self.pos])
        if math.isinf(value):
            raise ScanError("Number out of range", start)
        return value

    def read_identifier(self) -> str:
        """Read an identifier: a letter or '_' followed by letters, digits, '_'."""
        self.skip_whitespace()
        start = self.pos
        if not self.at_identifier():
            raise ScanError("Expected identifier", start)
        while self.current_char() and self.current_char() in IDENT_CHARS:
            self.pos += 1
        return self.source[start:self.pos]

    def describe(self, pos: Optional[int] = None) -> str:
        """Describe the character at pos for error messages."""
        if pos is None:
            pos = self.pos
        if pos >= len(self.source):
            return "end of input"
        return repr(self.source[pos])
