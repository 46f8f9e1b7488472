"""
Kaleidoscope Error Hierarchy
============================

This module defines the exception hierarchy for the Kaleidoscope front end.
All exceptions inherit from KaleidoscopeError, allowing callers to catch
every front-end error with a single except clause if desired.

Exception Hierarchy
-------------------
KaleidoscopeError (base)
└── ParseError - syntax errors found while building the AST
    ├── UnexpectedTokenError - no grammar production accepts the token
    └── MissingTokenError - a required '(' / ')' / ',' is absent

There is no lexical error category: any character the tokenizer does not
recognise becomes a single-character token, and the parser decides whether
it is acceptable.

Error Message Format
--------------------
    filename:line:column: error: description
        source_line_text
            ^ (pointer to error location)
    hint: suggestion for fixing

Example:
    <stdin>:1:8: error: expected ')' or ',' in argument list
        foo(1, 2
               ^
"""

from dataclasses import dataclass
from typing import List, Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class KaleidoscopeError(Exception):
    """
    Base exception for all Kaleidoscope front-end errors.

        try:
            unit = parser.parse_top_level_unit()
        except KaleidoscopeError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in the character stream, used for error reporting.

    Attributes:
        filename: Name of the source (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Syntax Errors
# =============================================================================

class ParseError(KaleidoscopeError):
    """
    Syntax error raised while parsing one top-level unit.

    A ParseError aborts the whole unit being parsed; no partial AST is
    handed back to the caller.

    Attributes:
        message: The error description
        location: Where in the source the offending token starts
        hint: A suggestion for fixing the error (optional)
        source_line: The text of the line read so far (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

            <stdin>:2:5: error: unknown token when expecting an expression
                1 + )
                    ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class UnexpectedTokenError(ParseError):
    """
    Unexpected token during parsing.

    Raised when the current token does not start any production the
    parser can accept at that point (for example ')' where an expression
    was expected).
    """

    def __init__(
        self,
        message: str,
        found: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        super().__init__(
            message,
            location=location,
            hint=f"found {found}",
            source_line=source_line,
        )


class MissingTokenError(ParseError):
    """
    Required token is missing.

    Raised when a required delimiter ('(', ')' or ',') is not found
    where the grammar needs it.
    """

    def __init__(
        self,
        message: str,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        super().__init__(
            message,
            location=location,
            source_line=source_line,
        )


# =============================================================================
# Error Collection
# =============================================================================

class ErrorCollector:
    """
    Collects errors from a sequence of top-level parses for batch reporting.

    The core itself stops at the first error of a unit. A host that keeps
    asking for further units after a failure uses this to report every
    failure at the end.

    Example:
        collector = ErrorCollector(max_errors=20)

        while not parser.at_end:
            try:
                handle(parser.parse_top_level_unit())
            except ParseError as e:
                collector.add(e)
                if collector.should_stop():
                    break
                parser.cursor.advance()

        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        self.errors: List[KaleidoscopeError] = []
        self.max_errors = max_errors

    def add(self, error: KaleidoscopeError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def should_stop(self) -> bool:
        """Return True if max_errors has been reached."""
        return len(self.errors) >= self.max_errors

    def error_count(self) -> int:
        return len(self.errors)

    def report(self) -> str:
        """Format all errors for display, followed by a summary line."""
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        lines.append(self.summary())

        return "\n".join(lines)

    def summary(self) -> str:
        """Error count line, such as '1 error' or '3 errors'."""
        error_word = "error" if len(self.errors) == 1 else "errors"
        return f"{len(self.errors)} {error_word}"

    def clear(self) -> None:
        self.errors.clear()
