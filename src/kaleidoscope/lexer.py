"""
Kaleidoscope Lexer (Tokenizer)
==============================

This module converts a character stream into Kaleidoscope tokens, one
token per call to ``Lexer.next_token()``.

Token Categories
----------------
- EOF: end of input (produced again on every further request)
- DEF, EXTERN: the two reserved words (case-sensitive)
- IDENTIFIER: a letter followed by letters and digits
- NUMBER: a run of digits and '.' characters
- CHAR: any other single character (operators, '(', ')', ',', ';', ...)

Comments
--------
'#' starts a comment that runs to the end of the line. Comments produce
no token of their own.

Numeric Literals
----------------
The lexer accepts any run of digits and dots, so ``1.2.3`` is one NUMBER
token. Its value is the longest valid decimal prefix of the run, the way
C's ``strtod`` reads it:

| Text    | Value |
|---------|-------|
| 42      | 42.0  |
| 3.14    | 3.14  |
| .5      | 0.5   |
| 1.2.3   | 1.2   |
| .       | 0.0   |

Example Usage
-------------
>>> from kaleidoscope.lexer import tokenize
>>> for token in tokenize("def foo(x) x+1"):
...     print(token)
Token(DEF, 'def', 1:1)
Token(IDENTIFIER, 'foo', 1:5)
Token(CHAR, '(', 1:8)
Token(IDENTIFIER, 'x', 1:9)
Token(CHAR, ')', 1:10)
Token(IDENTIFIER, 'x', 1:12)
Token(CHAR, '+', 1:13)
Token(NUMBER, 1.0, 1:14)
Token(EOF, 1:15)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, TextIO, Union
import logging
import re
import string

from kaleidoscope.errors import SourceLocation
from kaleidoscope.source import CharacterSource

logger = logging.getLogger(__name__)


# =============================================================================
# Token Kinds
# =============================================================================

class TokenKind(Enum):
    """Categories of Kaleidoscope tokens."""

    EOF = auto()            # End of input
    DEF = auto()            # 'def' keyword
    EXTERN = auto()         # 'extern' keyword
    IDENTIFIER = auto()     # Names
    NUMBER = auto()         # Numeric literals
    CHAR = auto()           # Any other single character


KEYWORDS: dict[str, TokenKind] = {
    "def": TokenKind.DEF,
    "extern": TokenKind.EXTERN,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the character stream.

    Attributes:
        kind: The TokenKind classification
        value: Identifier/keyword text, float value for NUMBER, the character
               itself for CHAR, None for EOF
        line: Line number where the token starts (1-indexed)
        column: Column number where the token starts (1-indexed)
        filename: Name of the source
    """
    kind: TokenKind
    value: Union[str, float, None]
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.kind.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.kind.name}, {self.line}:{self.column})"

    __str__ = __repr__

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_char(self, char: str) -> bool:
        """Return True if this is the single-character token ``char``."""
        return self.kind == TokenKind.CHAR and self.value == char

    def describe(self) -> str:
        """Short human-readable form used in diagnostics."""
        if self.kind == TokenKind.EOF:
            return "end of input"
        if self.kind == TokenKind.NUMBER:
            return f"number {self.value:g}"
        if self.kind == TokenKind.IDENTIFIER:
            return f"identifier '{self.value}'"
        if self.kind in (TokenKind.DEF, TokenKind.EXTERN):
            return f"keyword '{self.value}'"
        return f"'{self.value}'"


# =============================================================================
# Numeric Conversion
# =============================================================================

# Longest decimal prefix strtod would accept from a digits-and-dots run
_NUMBER_PREFIX = re.compile(r"\d*\.?\d*")


def parse_number(text: str) -> float:
    """
    Convert a run of digits and dots to a float.

    Only the longest valid decimal prefix is used; text without any digit
    in that prefix converts to 0.0.
    """
    prefix = _NUMBER_PREFIX.match(text).group()
    if prefix != text:
        logger.debug(f"malformed numeric literal {text!r}, using prefix {prefix!r}")
    if not any(c.isdigit() for c in prefix):
        return 0.0
    return float(prefix)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Kaleidoscope source, one token per ``next_token()`` call.

    The lexer holds no token history; it only owns the character source
    and its single pending character. Feeding the same text to a fresh
    lexer always yields the same token sequence.

    Usage:
        lexer = Lexer("def f(x) x*x", "<input>")
        token = lexer.next_token()

    Attributes:
        source: The CharacterSource being read
    """

    IDENT_START = string.ascii_letters
    IDENT_CHARS = string.ascii_letters + string.digits
    NUMBER_CHARS = string.digits + "."

    def __init__(
        self,
        source: Union[str, TextIO, CharacterSource],
        filename: str = "<input>",
    ):
        """
        Args:
            source: Text, a text stream, or an existing CharacterSource
            filename: Name of the source (ignored for a CharacterSource)
        """
        if isinstance(source, CharacterSource):
            self.source = source
        else:
            self.source = CharacterSource(source, filename)

    @property
    def filename(self) -> str:
        return self.source.filename

    def tokenize(self) -> Iterator[Token]:
        """
        Yield tokens up to and including the first EOF token.
        """
        while True:
            token = self.next_token()
            yield token
            if token.kind == TokenKind.EOF:
                return

    def next_token(self) -> Token:
        """Produce the next token from the character stream."""
        src = self.source

        while True:
            while src.peek() != "" and src.peek().isspace():
                src.advance()

            char = src.peek()
            line, column = src.line, src.column

            if char != "" and char in self.IDENT_START:
                return self._scan_identifier(line, column)

            if char != "" and char in self.NUMBER_CHARS:
                return self._scan_number(line, column)

            if char == "#":
                self._skip_comment()
                continue

            if char == "":
                return self._make_token(TokenKind.EOF, None, line, column)

            src.advance()
            return self._make_token(TokenKind.CHAR, char, line, column)

    # =========================================================================
    # Scanners
    # =========================================================================

    def _make_token(self, kind: TokenKind, value, line: int, column: int) -> Token:
        return Token(
            kind=kind,
            value=value,
            line=line,
            column=column,
            filename=self.source.filename,
        )

    def _scan_identifier(self, line: int, column: int) -> Token:
        """Scan an identifier or keyword."""
        chars = [self.source.advance()]
        while self.source.peek() != "" and self.source.peek() in self.IDENT_CHARS:
            chars.append(self.source.advance())

        text = "".join(chars)
        kind = KEYWORDS.get(text, TokenKind.IDENTIFIER)
        return self._make_token(kind, text, line, column)

    def _scan_number(self, line: int, column: int) -> Token:
        """Scan a maximal run of digits and dots."""
        chars = [self.source.advance()]
        while self.source.peek() != "" and self.source.peek() in self.NUMBER_CHARS:
            chars.append(self.source.advance())

        return self._make_token(TokenKind.NUMBER, parse_number("".join(chars)), line, column)

    def _skip_comment(self) -> None:
        """Skip a '#' comment up to (not including) the end of line."""
        while self.source.peek() not in ("", "\n", "\r"):
            self.source.advance()


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: Union[str, TextIO], filename: str = "<input>") -> list[Token]:
    """
    Tokenize a finite source into a list ending with the EOF token.

    Args:
        source: Text or text stream
        filename: Name of the source for token locations

    Returns:
        All tokens, including the final EOF
    """
    return list(Lexer(source, filename).tokenize())
