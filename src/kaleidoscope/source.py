"""
Character Source
================

A peekable, forward-only character stream for the tokenizer.

The source wraps either a string or a text stream (anything with a
``read(size)`` method, such as ``sys.stdin`` or ``io.StringIO``). It never
seeks: characters are pulled one at a time, and exactly one character is
kept "pending" so that whitespace and comment skipping can continue
across calls to the tokenizer.

Exhaustion of the underlying stream is not an error; ``peek()`` simply
returns the empty string from then on.

Example Usage
-------------
>>> src = CharacterSource("ab\\nc")
>>> src.peek(), src.advance(), src.peek()
('a', 'a', 'b')
>>> src.advance()
'b'
>>> src.advance()
'\\n'
>>> src.line, src.column
(2, 1)
"""

from typing import Optional, TextIO, Union

from kaleidoscope.errors import SourceLocation


class CharacterSource:
    """
    Forward-only character stream with line/column tracking.

    Attributes:
        filename: Name used in source locations
        line: Line of the pending character (1-indexed)
        column: Column of the pending character (1-indexed)
    """

    def __init__(
        self,
        source: Union[str, TextIO],
        filename: str = "<input>",
    ):
        """
        Args:
            source: The text to read, or a text stream to pull from
            filename: Name of the source (for error messages)
        """
        self.filename = filename
        self.line = 1
        self.column = 1

        if isinstance(source, str):
            self._text: Optional[str] = source
            self._stream: Optional[TextIO] = None
        else:
            self._text = None
            self._stream = source
        self._pos = 0

        # The one character read ahead of the consumer; None until the
        # first peek so that nothing is pulled from an interactive stream
        # before it is needed.
        self._pending: Optional[str] = None

        # Characters of the current line consumed so far, for diagnostics
        self._line_text: list[str] = []
        self._after_cr = False

    def _pull(self) -> str:
        """Fetch one character from the underlying text or stream."""
        if self._text is not None:
            if self._pos >= len(self._text):
                return ""
            char = self._text[self._pos]
            self._pos += 1
            return char
        return self._stream.read(1)

    def peek(self) -> str:
        """Return the pending character without consuming it ('' at end)."""
        if self._pending is None:
            self._pending = self._pull()
        return self._pending

    def advance(self) -> str:
        """
        Consume and return the pending character.

        Returns the empty string once the stream is exhausted.
        """
        char = self.peek()
        if char == "":
            return char

        after_cr = self._after_cr
        self._after_cr = char == "\r"
        self._pending = None

        # "\n", "\r" and "\r\n" each end one line
        if char == "\n" and after_cr:
            pass
        elif char in "\r\n":
            self.line += 1
            self.column = 1
            self._line_text = []
        else:
            self.column += 1
            self._line_text.append(char)
        return char

    def at_end(self) -> bool:
        return self.peek() == ""

    @property
    def location(self) -> SourceLocation:
        """Location of the pending character."""
        return SourceLocation(self.filename, self.line, self.column)

    def current_line(self) -> str:
        """
        Text of the current line consumed so far, plus the pending
        character when it belongs to the same line.

        The stream cannot be rewound, so this is as much of the line as
        is known at the time of an error.
        """
        text = "".join(self._line_text)
        pending = self._pending
        if pending and pending not in "\r\n":
            text += pending
        return text
