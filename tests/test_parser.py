"""
Kaleidoscope Parser Test Suite
==============================

Tests for expression parsing, precedence climbing, declarations and
syntax error reporting.

Test Organization
-----------------
- TestPrimaryExpressions: literals, names, calls, parentheses
- TestPrecedenceClimbing: operator binding and associativity
- TestDeclarations: def, extern and anonymous top-level expressions
- TestSyntaxErrors: diagnostics and all-or-nothing failure
- TestSessions: multiple units, streams and shared tables
"""

import io
import re
import sys

import pytest
from kaleidoscope.ast import (
    BinaryExpression,
    CallExpression,
    Declaration,
    Definition,
    NumberLiteral,
    Prototype,
    VariableReference,
)
from kaleidoscope.errors import MissingTokenError, ParseError, UnexpectedTokenError
from kaleidoscope.lexer import TokenKind
from kaleidoscope.parser import Parser, ParserOptions, parse_expression, parse_top_level_unit
from kaleidoscope.precedence import PrecedenceTable, initialize_precedence_table


# =============================================================================
# Helper Functions
# =============================================================================

def N(value):
    return NumberLiteral(float(value))


def V(name):
    return VariableReference(name)


def B(op, left, right):
    return BinaryExpression(op, left, right)


def raises_message(message: str):
    """pytest.raises for a ParseError whose text contains ``message``."""
    return pytest.raises(ParseError, match=re.escape(message))


# =============================================================================
# Primary Expression Tests
# =============================================================================

class TestPrimaryExpressions:
    """Tests for the primary expression productions."""

    def test_number(self):
        assert parse_expression("42") == N(42)

    def test_variable(self):
        assert parse_expression("x") == V("x")

    def test_call_without_arguments(self):
        assert parse_expression("foo()") == CallExpression("foo", ())

    def test_call_with_arguments(self):
        """Arguments are full expressions, kept in source order."""
        expr = parse_expression("f(a+1, g(b), 2)")
        assert expr == CallExpression("f", (
            B("+", V("a"), N(1)),
            CallExpression("g", (V("b"),)),
            N(2),
        ))

    def test_name_then_space_then_paren_is_call(self):
        """Whitespace between callee and '(' is allowed."""
        assert parse_expression("f (1)") == CallExpression("f", (N(1),))

    def test_parentheses_produce_no_node(self):
        assert parse_expression("((x))") == V("x")

    def test_parentheses_group(self):
        assert parse_expression("(1+2)*3") == B("*", B("+", N(1), N(2)), N(3))

    def test_node_locations(self):
        """Nodes record where their first token starts."""
        expr = parse_expression("a +\n  f(b)")
        assert expr.location.line == 1
        assert expr.right.location.line == 2
        assert expr.right.location.column == 3


# =============================================================================
# Precedence Climbing Tests
# =============================================================================

class TestPrecedenceClimbing:
    """Tests for binary operator resolution."""

    def test_multiplication_binds_tighter(self):
        assert parse_expression("1+2*3") == B("+", N(1), B("*", N(2), N(3)))

    def test_multiplication_first(self):
        assert parse_expression("1*2+3") == B("+", B("*", N(1), N(2)), N(3))

    def test_equal_precedence_is_left_associative(self):
        assert parse_expression("1-2-3") == B("-", B("-", N(1), N(2)), N(3))

    def test_seed_table_subtraction_binds_tighter_than_addition(self):
        """The seed table ranks '-' above '+'."""
        assert parse_expression("a+b-c") == B("+", V("a"), B("-", V("b"), V("c")))
        assert parse_expression("a-b+c") == B("+", B("-", V("a"), V("b")), V("c"))

    def test_all_seed_operators(self):
        expr = parse_expression("a<b+c-d*e")
        assert expr == B("<", V("a"), B("+", V("b"), B("-", V("c"), B("*", V("d"), V("e")))))

    def test_comparison_is_loosest(self):
        assert parse_expression("x*2 < y") == B("<", B("*", V("x"), N(2)), V("y"))

    def test_unknown_operator_ends_expression(self):
        """A character absent from the table does not continue the expression."""
        parser = Parser("a / b")
        assert parser.parse_expression() == V("a")
        assert parser.cursor.is_char("/")

    def test_added_operator(self):
        table = initialize_precedence_table()
        table.set("/", 40)
        assert parse_expression("a/b-c", table) == B("-", B("/", V("a"), V("b")), V("c"))

    def test_overridden_precedence(self):
        """Conventional arithmetic once '-' is lowered to the level of '+'."""
        table = initialize_precedence_table()
        table.set("-", 20)
        assert parse_expression("1+2-3", table) == B("-", B("+", N(1), N(2)), N(3))

    def test_removed_operator(self):
        table = initialize_precedence_table()
        table.remove("<")
        parser = Parser("a < b", precedence=table)
        assert parser.parse_expression() == V("a")

    def test_long_left_associative_chain(self):
        expr = parse_expression("1*2*3*4")
        assert expr == B("*", B("*", B("*", N(1), N(2)), N(3)), N(4))

    def test_higher_then_lower_then_higher(self):
        """a*b+c*d groups both products under the addition."""
        expr = parse_expression("a*b+c*d")
        assert expr == B("+", B("*", V("a"), V("b")), B("*", V("c"), V("d")))


# =============================================================================
# Declaration Tests
# =============================================================================

class TestDeclarations:
    """Tests for def, extern and top-level expressions."""

    def test_definition(self):
        unit = parse_top_level_unit("def foo(x) x")
        assert isinstance(unit, Definition)
        assert unit.prototype == Prototype("foo", ("x",))
        assert unit.body == V("x")

    def test_definition_with_several_parameters(self):
        unit = parse_top_level_unit("def add(a b c) a+b+c")
        assert unit.prototype.parameters == ("a", "b", "c")
        assert unit.body == B("+", B("+", V("a"), V("b")), V("c"))

    def test_definition_without_parameters(self):
        unit = parse_top_level_unit("def one() 1")
        assert unit.prototype == Prototype("one", ())
        assert unit.body == N(1)

    def test_duplicate_parameters_are_accepted(self):
        unit = parse_top_level_unit("def f(x x) x")
        assert unit.prototype.parameters == ("x", "x")

    def test_extern(self):
        unit = parse_top_level_unit("extern sin(x)")
        assert isinstance(unit, Declaration)
        assert unit.prototype == Prototype("sin", ("x",))
        assert not hasattr(unit, "body")

    def test_extern_does_not_consume_a_body(self):
        parser = Parser("extern cos(x) 42")
        parser.parse_top_level_unit()
        assert parser.cursor.current.value == 42.0

    def test_top_level_expression(self):
        unit = parse_top_level_unit("42")
        assert isinstance(unit, Definition)
        assert unit.prototype == Prototype("", ())
        assert unit.is_anonymous
        assert unit.body == N(42)

    def test_top_level_call(self):
        unit = parse_top_level_unit("foo(1, 2)")
        assert unit.body == CallExpression("foo", (N(1), N(2)))


# =============================================================================
# Syntax Error Tests
# =============================================================================

class TestSyntaxErrors:
    """Tests for syntax error diagnostics."""

    def test_unterminated_argument_list(self):
        with raises_message("expected ')' or ',' in argument list") as exc_info:
            parse_top_level_unit("foo(1,2")
        assert isinstance(exc_info.value, MissingTokenError)

    def test_missing_comma_between_arguments(self):
        with raises_message("expected ')' or ',' in argument list"):
            parse_expression("foo(1 2)")

    def test_missing_close_paren(self):
        with raises_message("expected ')'"):
            parse_expression("(1+2")

    def test_unknown_token(self):
        with raises_message("unknown token when expecting an expression") as exc_info:
            parse_expression(")")
        assert isinstance(exc_info.value, UnexpectedTokenError)
        assert exc_info.value.found == "')'"

    def test_empty_input_is_not_an_expression(self):
        with raises_message("unknown token when expecting an expression"):
            parse_top_level_unit("")

    def test_missing_right_operand(self):
        with raises_message("unknown token when expecting an expression"):
            parse_expression("1 +")

    def test_keyword_is_not_an_expression(self):
        with raises_message("unknown token when expecting an expression"):
            parse_expression("1 + def")

    def test_missing_function_name(self):
        with raises_message("expected function name in prototype"):
            parse_top_level_unit("def (x) x")

    def test_missing_open_paren_in_prototype(self):
        with raises_message("expected '(' in prototype"):
            parse_top_level_unit("extern sin x")

    def test_comma_in_prototype(self):
        """Parameters are separated by whitespace, not commas."""
        with raises_message("expected ')' in prototype"):
            parse_top_level_unit("def f(x, y) x")

    def test_missing_body(self):
        with raises_message("unknown token when expecting an expression"):
            parse_top_level_unit("def f(x)")

    def test_error_location_and_format(self):
        with pytest.raises(ParseError) as exc_info:
            parse_top_level_unit("foo(1,2", filename="prog.kal")
        error = exc_info.value
        assert (error.location.line, error.location.column) == (1, 8)
        lines = str(error).splitlines()
        assert lines[0] == "prog.kal:1:8: error: expected ')' or ',' in argument list"
        assert lines[1] == "    foo(1,2"

    def test_deep_nesting_is_a_parse_error(self):
        """Nesting past the interpreter's recursion limit is a syntax error."""
        depth = sys.getrecursionlimit() + 100
        text = "(" * depth + "1" + ")" * depth
        with raises_message("expression nested too deeply"):
            parse_top_level_unit(text)
        with raises_message("expression nested too deeply"):
            parse_expression(text)

    def test_moderate_nesting_parses(self):
        assert parse_expression("(" * 50 + "x" + ")" * 50) == V("x")

    def test_failure_leaves_cursor_on_offending_token(self):
        """No unit is returned; the caller decides how to resynchronise."""
        parser = Parser("foo(1 2) 3")
        with pytest.raises(ParseError):
            parser.parse_top_level_unit()
        assert parser.cursor.current.kind == TokenKind.NUMBER
        assert parser.cursor.current.value == 2.0


# =============================================================================
# Session Tests
# =============================================================================

class TestSessions:
    """Tests for repeated parses and session configuration."""

    def test_consecutive_units(self):
        parser = Parser("def f(x) x*2 extern g(a b) f(3)")
        first = parser.parse_top_level_unit()
        second = parser.parse_top_level_unit()
        third = parser.parse_top_level_unit()

        assert first.name == "f"
        assert isinstance(second, Declaration)
        assert third.body == CallExpression("f", (N(3),))
        assert parser.at_end

    def test_stream_source(self):
        parser = Parser(io.StringIO("# header\ndef id(x) x\nid(1)\n"))
        assert parser.parse_top_level_unit().name == "id"
        assert parser.parse_top_level_unit().is_anonymous
        assert parser.at_end

    def test_shared_frozen_table(self):
        """A frozen table can serve independent sessions."""
        table = initialize_precedence_table().freeze()
        a = Parser("1+2*3", precedence=table)
        b = Parser("1-2-3", precedence=table)
        assert b.parse_expression() == B("-", B("-", N(1), N(2)), N(3))
        assert a.parse_expression() == B("+", N(1), B("*", N(2), N(3)))

    def test_options_operators_do_not_mutate_callers_table(self):
        table = initialize_precedence_table()
        options = ParserOptions(precedence=table, operators={"/": 40})
        assert "/" in options.precedence
        assert "/" not in table

    def test_options_default_table(self):
        options = ParserOptions()
        assert options.precedence.get("*") == 40
        assert options.filename == "<input>"

    def test_options_filename(self):
        parser = Parser("x", options=ParserOptions(filename="repl"))
        assert parser.cursor.lexer.filename == "repl"

    def test_custom_table_instance(self):
        table = PrecedenceTable({"^": 50, "+": 10})
        assert parse_expression("a+b^c", table) == B("+", V("a"), B("^", V("b"), V("c")))

    def test_overrides_leave_shared_options_untouched(self):
        """Per-session overrides do not leak into later sessions."""
        options = ParserOptions()
        Parser("x", precedence=PrecedenceTable({"+": 10}), filename="a.kal", options=options)

        assert options.filename == "<input>"
        second = Parser("1*2", options=options)
        assert second.precedence.get("*") == 40
        assert second.parse_expression() == B("*", N(1), N(2))

    def test_options_operators_apply_over_precedence_argument(self):
        table = initialize_precedence_table()
        parser = Parser("a/b", precedence=table, options=ParserOptions(operators={"/": 40}))
        assert parser.parse_expression() == B("/", V("a"), V("b"))
        assert "/" not in table
