"""
Kaleidoscope Front End
======================

Tokenizer and recursive-descent, precedence-climbing parser for the
Kaleidoscope toy language: numeric expressions, variable references,
calls, function definitions ('def') and external declarations ('extern').

Pipeline
--------
    characters → CharacterSource → Lexer → TokenCursor → Parser → AST

The caller owns the character source and asks the parser for one
top-level unit at a time. What happens to a parsed unit, and whether to
keep going after a syntax error, is up to the caller.

Usage
-----
>>> from kaleidoscope import Parser
>>> parser = Parser("def square(x) x*x  square(4)")
>>> unit = parser.parse_top_level_unit()
>>> unit.prototype.name, unit.prototype.parameters
('square', ('x',))
>>> parser.parse_top_level_unit().is_anonymous
True

Command line:
    $ kparse program.kal --ast

Author: Kaleidoscope Front End Contributors
"""

__version__ = "1.0.0"
__author__ = "Kaleidoscope Front End Contributors"

# =============================================================================
# Public API Imports
# =============================================================================

from kaleidoscope.errors import (
    KaleidoscopeError,
    ParseError,
    UnexpectedTokenError,
    MissingTokenError,
    ErrorCollector,
    SourceLocation,
)
from kaleidoscope.source import CharacterSource
from kaleidoscope.lexer import Lexer, Token, TokenKind, tokenize
from kaleidoscope.cursor import TokenCursor
from kaleidoscope.precedence import (
    PrecedenceTable,
    DEFAULT_BINARY_PRECEDENCE,
    initialize_precedence_table,
)
from kaleidoscope.parser import (
    Parser,
    ParserOptions,
    parse_top_level_unit,
    parse_expression,
)
from kaleidoscope.ast import (
    ASTNode,
    Expression,
    ExpressionNode,
    NumberLiteral,
    VariableReference,
    BinaryExpression,
    CallExpression,
    Prototype,
    Definition,
    Function,
    Declaration,
    TopLevelUnit,
    ASTVisitor,
    ASTPrinter,
    SourcePrinter,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "KaleidoscopeError",
    "ParseError",
    "UnexpectedTokenError",
    "MissingTokenError",
    "ErrorCollector",
    "SourceLocation",
    # Lexer
    "CharacterSource",
    "Lexer",
    "Token",
    "TokenKind",
    "tokenize",
    "TokenCursor",
    # Precedence
    "PrecedenceTable",
    "DEFAULT_BINARY_PRECEDENCE",
    "initialize_precedence_table",
    # Parser
    "Parser",
    "ParserOptions",
    "parse_top_level_unit",
    "parse_expression",
    # AST
    "ASTNode",
    "Expression",
    "ExpressionNode",
    "NumberLiteral",
    "VariableReference",
    "BinaryExpression",
    "CallExpression",
    "Prototype",
    "Definition",
    "Function",
    "Declaration",
    "TopLevelUnit",
    "ASTVisitor",
    "ASTPrinter",
    "SourcePrinter",
]
