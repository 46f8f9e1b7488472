"""
Token Cursor
============

Single-token lookahead buffer between the lexer and the parser.

The parser only ever inspects the *current* token. ``advance()`` asks the
lexer for the next token and overwrites the current one; nothing older is
kept. The cursor must be primed with one ``advance()`` before the first
parse.
"""

from typing import Optional

from kaleidoscope.lexer import Lexer, Token, TokenKind


class TokenCursor:
    """
    Holds the current token of a parsing session.

    Usage:
        cursor = TokenCursor(Lexer("1 + 2"))
        cursor.advance()              # prime
        while not cursor.at_end:
            print(cursor.current)
            cursor.advance()
    """

    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self._current: Optional[Token] = None

    @property
    def primed(self) -> bool:
        """True once the first token has been read."""
        return self._current is not None

    @property
    def current(self) -> Token:
        """
        The current token.

        Raises:
            RuntimeError: If the cursor has not been primed yet
        """
        if self._current is None:
            raise RuntimeError("token cursor used before the first advance()")
        return self._current

    def advance(self) -> Token:
        """Read the next token, make it current, and return it."""
        self._current = self.lexer.next_token()
        return self._current

    @property
    def at_end(self) -> bool:
        return self.current.kind == TokenKind.EOF

    def is_kind(self, kind: TokenKind) -> bool:
        return self.current.kind == kind

    def is_char(self, char: str) -> bool:
        return self.current.is_char(char)
