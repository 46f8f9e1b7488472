"""
Kaleidoscope Recursive Descent Parser
=====================================

This module parses Kaleidoscope source into AST units, one top-level
construct per call. Primary expressions are parsed by recursive descent;
chains of binary operators are resolved by precedence climbing over a
PrecedenceTable, so the operator set is open rather than built into the
grammar.

Grammar (Simplified EBNF)
-------------------------
toplevel     ::= definition | external | expression
definition   ::= 'def' prototype expression
external     ::= 'extern' prototype
prototype    ::= IDENTIFIER '(' IDENTIFIER* ')'

expression   ::= primary binoprhs
binoprhs     ::= (BINOP primary)*
primary      ::= NUMBER
               | IDENTIFIER
               | IDENTIFIER '(' (expression (',' expression)*)? ')'
               | '(' expression ')'

BINOP is any single character with a positive precedence in the table.

Precedence Climbing
-------------------
Operators of equal precedence associate to the left: the right-hand side
is only pulled into a deeper subtree when the *following* operator binds
strictly tighter than the one just consumed. With the seed table:

    1+2*3   →  (1 + (2 * 3))
    1-2-3   →  ((1 - 2) - 3)

Example Usage
-------------
>>> from kaleidoscope.parser import Parser
>>> parser = Parser("def add(a b) a + b  extern sin(x)")
>>> parser.parse_top_level_unit()
Definition(prototype=Prototype(name='add', parameters=('a', 'b')), body=...)
>>> parser.parse_top_level_unit()
Declaration(prototype=Prototype(name='sin', parameters=('x',)))
>>> parser.at_end
True
"""

from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Optional, TextIO, Union
import logging

from kaleidoscope.ast import (
    BinaryExpression,
    CallExpression,
    Declaration,
    Definition,
    Expression,
    NumberLiteral,
    Prototype,
    TopLevelUnit,
    VariableReference,
)
from kaleidoscope.cursor import TokenCursor
from kaleidoscope.errors import MissingTokenError, ParseError, UnexpectedTokenError
from kaleidoscope.lexer import Lexer, Token, TokenKind
from kaleidoscope.precedence import PrecedenceTable, initialize_precedence_table
from kaleidoscope.source import CharacterSource

logger = logging.getLogger(__name__)


# =============================================================================
# Parser Configuration
# =============================================================================

@dataclass
class ParserOptions:
    """
    Parser configuration options.

    Attributes:
        filename: Name of the source, used in token locations and errors
        precedence: Table to consult. None means a fresh seed table from
                    initialize_precedence_table().
        operators: Extra or overriding operator precedences applied on top
                   of ``precedence`` (for example ``{"/": 40}``). When given
                   together with a table, the table is copied first so the
                   caller's table is left untouched.
    """
    filename: str = "<input>"
    precedence: Optional[PrecedenceTable] = None
    operators: dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if self.precedence is None:
            self.precedence = initialize_precedence_table()
        elif self.operators:
            self.precedence = self.precedence.copy()
        for operator, value in self.operators.items():
            self.precedence.set(operator, value)


# =============================================================================
# Parser
# =============================================================================

class Parser:
    """
    One parsing session over one character stream.

    The session owns its character source, lexer and token cursor. The
    precedence table is only read, so a frozen table may be shared by
    several sessions.

    Each parse method starts at the current token and, on success, leaves
    the cursor on the first token after the construct. On failure it
    raises ParseError and returns nothing.

    Attributes:
        cursor: The session's single-token lookahead buffer
        precedence: Operator precedence table consulted by the parser
    """

    def __init__(
        self,
        source: Union[str, TextIO, CharacterSource],
        precedence: Optional[PrecedenceTable] = None,
        filename: Optional[str] = None,
        options: Optional[ParserOptions] = None,
    ):
        """
        Args:
            source: Text, a text stream, or a CharacterSource
            precedence: Precedence table (overrides options.precedence)
            filename: Source name (overrides options.filename)
            options: Parser configuration (defaults if None)
        """
        options = options or ParserOptions()
        overrides = {}
        if filename is not None:
            overrides["filename"] = filename
        if precedence is not None:
            overrides["precedence"] = precedence
        if overrides:
            # Fresh options; __post_init__ re-applies operators over the table
            options = replace(options, **overrides)

        self.options = options

        self.precedence: PrecedenceTable = self.options.precedence
        self.lexer = Lexer(source, self.options.filename)
        self.cursor = TokenCursor(self.lexer)

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _current(self) -> Token:
        """Current token, priming the cursor on first use."""
        if not self.cursor.primed:
            self.cursor.advance()
        return self.cursor.current

    def _advance(self) -> Token:
        return self.cursor.advance()

    @property
    def at_end(self) -> bool:
        """True when the current token is EOF."""
        return self._current().kind == TokenKind.EOF

    def _token_precedence(self) -> int:
        """
        Precedence of the current token as a binary operator, or -1 when it
        cannot continue a binary expression.
        """
        token = self._current()
        if token.kind != TokenKind.CHAR:
            return -1
        precedence = self.precedence.get(token.value)
        if precedence is None or precedence <= 0:
            return -1
        return precedence

    def _source_line(self) -> str:
        return self.lexer.source.current_line()

    def _missing(self, message: str, expected: str) -> MissingTokenError:
        token = self._current()
        return MissingTokenError(
            message,
            expected,
            location=token.location,
            source_line=self._source_line(),
        )

    def _unexpected(self, message: str) -> UnexpectedTokenError:
        token = self._current()
        return UnexpectedTokenError(
            message,
            token.describe(),
            location=token.location,
            source_line=self._source_line(),
        )

    @contextmanager
    def _nesting_guard(self):
        """Report runaway recursion on deeply nested input as a ParseError."""
        try:
            yield
        except RecursionError:
            token = self._current()
            raise ParseError(
                "expression nested too deeply",
                location=token.location,
                source_line=self._source_line(),
            ) from None

    # =========================================================================
    # Top-Level Parsing
    # =========================================================================

    def parse_top_level_unit(self) -> TopLevelUnit:
        """
        Parse exactly one top-level construct.

        Returns:
            A Definition for 'def' and bare expressions, a Declaration for
            'extern'

        Raises:
            ParseError: If the construct is malformed
        """
        token = self._current()
        if token.kind == TokenKind.DEF:
            return self.parse_definition()
        if token.kind == TokenKind.EXTERN:
            return self.parse_extern()
        return self.parse_top_level_expression()

    def parse_definition(self) -> Definition:
        """definition ::= 'def' prototype expression"""
        location = self._current().location
        self._advance()  # consume 'def'
        proto = self.parse_prototype()
        with self._nesting_guard():
            body = self._parse_expression()

        logger.debug(
            f"parsed definition '{proto.name}' with {len(proto.parameters)} parameter(s)"
        )
        return Definition(proto, body, location=location)

    def parse_extern(self) -> Declaration:
        """external ::= 'extern' prototype"""
        location = self._current().location
        self._advance()  # consume 'extern'
        proto = self.parse_prototype()

        logger.debug(f"parsed extern '{proto.name}'")
        return Declaration(proto, location=location)

    def parse_top_level_expression(self) -> Definition:
        """Parse a bare expression and wrap it in an anonymous definition."""
        location = self._current().location
        with self._nesting_guard():
            body = self._parse_expression()
        proto = Prototype("", (), location=location)

        logger.debug("parsed top-level expression")
        return Definition(proto, body, location=location)

    def parse_prototype(self) -> Prototype:
        """prototype ::= IDENTIFIER '(' IDENTIFIER* ')'"""
        token = self._current()
        if token.kind != TokenKind.IDENTIFIER:
            raise self._missing("expected function name in prototype", "function name")

        name = token.value
        self._advance()

        if not self.cursor.is_char("("):
            raise self._missing("expected '(' in prototype", "(")

        parameters = []
        while self._advance().kind == TokenKind.IDENTIFIER:
            parameters.append(self.cursor.current.value)

        if not self.cursor.is_char(")"):
            raise self._missing("expected ')' in prototype", ")")
        self._advance()  # consume ')'

        return Prototype(name, tuple(parameters), location=token.location)

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def parse_expression(self) -> Expression:
        """expression ::= primary binoprhs"""
        with self._nesting_guard():
            return self._parse_expression()

    def parse_primary(self) -> Expression:
        """Dispatch on the current token to the matching primary production."""
        with self._nesting_guard():
            return self._parse_primary()

    def _parse_expression(self) -> Expression:
        lhs = self._parse_primary()
        return self._parse_binary_rhs(0, lhs)

    def _parse_primary(self) -> Expression:
        token = self._current()

        if token.kind == TokenKind.NUMBER:
            self._advance()
            return NumberLiteral(token.value, location=token.location)

        if token.kind == TokenKind.IDENTIFIER:
            return self._parse_identifier()

        if token.is_char("("):
            return self._parse_paren()

        raise self._unexpected("unknown token when expecting an expression")

    def _parse_identifier(self) -> Expression:
        """
        identifier ::= IDENTIFIER
                     | IDENTIFIER '(' (expression (',' expression)*)? ')'
        """
        token = self._current()
        name = token.value
        self._advance()

        if not self.cursor.is_char("("):
            return VariableReference(name, location=token.location)

        self._advance()  # consume '('
        arguments = []
        if not self.cursor.is_char(")"):
            while True:
                arguments.append(self._parse_expression())

                if self.cursor.is_char(")"):
                    break
                if not self.cursor.is_char(","):
                    raise self._missing("expected ')' or ',' in argument list", ") or ,")
                self._advance()  # consume ','

        self._advance()  # consume ')'
        return CallExpression(name, tuple(arguments), location=token.location)

    def _parse_paren(self) -> Expression:
        """parenexpr ::= '(' expression ')'"""
        self._advance()  # consume '('
        expr = self._parse_expression()

        if not self.cursor.is_char(")"):
            raise self._missing("expected ')'", ")")
        self._advance()  # consume ')'
        return expr

    def _parse_binary_rhs(self, min_precedence: int, lhs: Expression) -> Expression:
        """
        Fold ``(BINOP primary)*`` onto ``lhs`` by precedence climbing.

        Args:
            min_precedence: Operators binding less tightly than this end
                            the expression at this level
            lhs: The already-parsed left-hand side
        """
        while True:
            precedence = self._token_precedence()
            if precedence < min_precedence or precedence < 0:
                return lhs

            op_token = self._current()
            self._advance()  # consume operator
            rhs = self._parse_primary()

            # A tighter operator after rhs takes rhs as its own left operand
            if precedence < self._token_precedence():
                rhs = self._parse_binary_rhs(precedence + 1, rhs)

            lhs = BinaryExpression(op_token.value, lhs, rhs, location=lhs.location)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_top_level_unit(
    source: Union[str, TextIO],
    precedence: Optional[PrecedenceTable] = None,
    filename: str = "<input>",
) -> TopLevelUnit:
    """
    Parse one top-level unit from the start of ``source``.

    Args:
        source: Text or text stream
        precedence: Precedence table (seed table if None)
        filename: Source name for error messages

    Returns:
        The parsed Definition or Declaration

    Raises:
        ParseError: If the unit is malformed
    """
    return Parser(source, precedence=precedence, filename=filename).parse_top_level_unit()


def parse_expression(
    source: Union[str, TextIO],
    precedence: Optional[PrecedenceTable] = None,
    filename: str = "<input>",
) -> Expression:
    """
    Parse one expression from the start of ``source``.

    Raises:
        ParseError: If the expression is malformed
    """
    return Parser(source, precedence=precedence, filename=filename).parse_expression()
