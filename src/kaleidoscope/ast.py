"""
Kaleidoscope Abstract Syntax Tree (AST) Definitions
===================================================

This module defines the node types built by the parser, a visitor base
class, and two printers.

Node Hierarchy
--------------
ASTNode (base)
├── Expressions (closed set)
│   ├── NumberLiteral - floating-point constant
│   ├── VariableReference - a name
│   ├── BinaryExpression - lhs <op> rhs, op is one character
│   └── CallExpression - callee(arg, ...)
├── Prototype - function name and parameter names
├── Definition - prototype + body ('def', or an anonymous top-level
│                expression wrapped with an empty-named prototype)
└── Declaration - prototype only ('extern')

Design Notes
------------
- All nodes are frozen dataclasses; children are held in tuples so a
  finished tree cannot be modified and each node has one owner.
- Each node may carry the source location of its first token. Locations
  are excluded from equality, so two trees parsed from differently
  spaced text compare equal.
- Consumers dispatch over the closed expression set with ASTVisitor or an
  isinstance chain; there are no virtual methods on the nodes.
"""

import math
from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any, Optional, Union

from kaleidoscope.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location of the node's first token (optional,
                  keyword-only, ignored by ==)
    """
    location: Optional[SourceLocation] = field(
        default=None, compare=False, repr=False, kw_only=True
    )


@dataclass(frozen=True)
class Expression(ASTNode):
    """Base class for the four expression node types."""
    pass


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class NumberLiteral(Expression):
    """
    Numeric constant such as ``1.0`` or ``42``.

    Attributes:
        value: The literal's value
    """
    value: float


@dataclass(frozen=True)
class VariableReference(Expression):
    """
    Reference to a named value such as ``x``.

    Attributes:
        name: The referenced name
    """
    name: str


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Binary operation such as ``a + b``.

    Attributes:
        operator: The operator character (a key of the precedence table)
        left: Left operand
        right: Right operand
    """
    operator: str
    left: Expression
    right: Expression


@dataclass(frozen=True)
class CallExpression(Expression):
    """
    Function call such as ``foo(1, x)``.

    Attributes:
        callee: Name of the called function
        arguments: Argument expressions, in source order
    """
    callee: str
    arguments: tuple[Expression, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "arguments", tuple(self.arguments))


ExpressionNode = Union[NumberLiteral, VariableReference, BinaryExpression, CallExpression]


# =============================================================================
# Function-Level Nodes
# =============================================================================

@dataclass(frozen=True)
class Prototype(ASTNode):
    """
    Function signature: a name and its parameter names.

    Parameter names are not checked for uniqueness here.

    Attributes:
        name: Function name; empty for an anonymous top-level expression
        parameters: Parameter names, in source order
    """
    name: str
    parameters: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "parameters", tuple(self.parameters))

    @property
    def is_anonymous(self) -> bool:
        return self.name == ""


@dataclass(frozen=True)
class Definition(ASTNode):
    """
    Function definition with a body.

    Produced for ``def`` and for bare top-level expressions, which get an
    anonymous prototype with no parameters.

    Attributes:
        prototype: The function's signature
        body: The function body
    """
    prototype: Prototype
    body: Expression

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def is_anonymous(self) -> bool:
        return self.prototype.is_anonymous


# A Function is a Definition; the name matches the usual Kaleidoscope term.
Function = Definition


@dataclass(frozen=True)
class Declaration(ASTNode):
    """
    External function declaration (``extern``): a prototype with no body.

    Attributes:
        prototype: The declared signature
    """
    prototype: Prototype

    @property
    def name(self) -> str:
        return self.prototype.name


TopLevelUnit = Union[Definition, Declaration]


# =============================================================================
# AST Visitor Base Class
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_* methods for the node types they care
    about; the others fall through to generic_visit, which visits every
    child node.

    Usage:
        class CallCollector(ASTVisitor):
            def __init__(self):
                self.callees = []

            def visit_CallExpression(self, node):
                self.callees.append(node.callee)
                self.generic_visit(node)

        collector = CallCollector()
        collector.visit(unit)
    """

    def visit(self, node: ASTNode) -> Any:
        """
        Visit a node by dispatching to the matching visit_* method.

        Returns:
            The result of the visit method (varies by node type)
        """
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all child nodes of ``node`` in field order."""
        for f in fields(node):
            value = getattr(node, f.name)
            if isinstance(value, ASTNode):
                self.visit(value)
            elif isinstance(value, tuple):
                for item in value:
                    if isinstance(item, ASTNode):
                        self.visit(item)

    def visit_NumberLiteral(self, node: NumberLiteral): return self.generic_visit(node)
    def visit_VariableReference(self, node: VariableReference): return self.generic_visit(node)
    def visit_BinaryExpression(self, node: BinaryExpression): return self.generic_visit(node)
    def visit_CallExpression(self, node: CallExpression): return self.generic_visit(node)
    def visit_Prototype(self, node: Prototype): return self.generic_visit(node)
    def visit_Definition(self, node: Definition): return self.generic_visit(node)
    def visit_Declaration(self, node: Declaration): return self.generic_visit(node)


# =============================================================================
# AST Pretty Printer
# =============================================================================

def format_number(value: float) -> str:
    """
    Render a number in the positional form the lexer reads back.

    The lexer has no exponent syntax, so ``1e-05`` is written ``0.00001``.
    An overflowed literal (``inf``) is written as a digit string that
    overflows again when read back.
    """
    if value == math.inf:
        return "1" + "0" * 309
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


class ASTPrinter(ASTVisitor):
    """
    Tree printer for AST debugging.

    Usage:
        printer = ASTPrinter()
        print(printer.print(unit))

    Output for ``def foo(x) x + 1``::

        Definition: foo(x)
          Binary '+'
            Variable x
            Number 1
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return it as a string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _indent(self) -> None:
        self.indent_level += 1

    def _dedent(self) -> None:
        self.indent_level = max(0, self.indent_level - 1)

    def _signature(self, proto: Prototype) -> str:
        name = proto.name if not proto.is_anonymous else "<anonymous>"
        return f"{name}({', '.join(proto.parameters)})"

    def visit_Definition(self, node: Definition):
        self._emit(f"Definition: {self._signature(node.prototype)}")
        self._indent()
        self.visit(node.body)
        self._dedent()

    def visit_Declaration(self, node: Declaration):
        self._emit(f"Declaration: {self._signature(node.prototype)}")

    def visit_Prototype(self, node: Prototype):
        self._emit(f"Prototype: {self._signature(node)}")

    def visit_NumberLiteral(self, node: NumberLiteral):
        self._emit(f"Number {format_number(node.value)}")

    def visit_VariableReference(self, node: VariableReference):
        self._emit(f"Variable {node.name}")

    def visit_BinaryExpression(self, node: BinaryExpression):
        self._emit(f"Binary '{node.operator}'")
        self._indent()
        self.visit(node.left)
        self.visit(node.right)
        self._dedent()

    def visit_CallExpression(self, node: CallExpression):
        self._emit(f"Call {node.callee}")
        self._indent()
        for arg in node.arguments:
            self.visit(arg)
        self._dedent()


class SourcePrinter:
    """
    Renders AST units back to Kaleidoscope source.

    Every binary expression is fully parenthesised, so the output reparses
    to an equal tree under any precedence table that defines the operators
    used.

    Usage:
        text = SourcePrinter().print(unit)
    """

    def print(self, node: ASTNode) -> str:
        if isinstance(node, Definition):
            if node.is_anonymous:
                return self._expr_str(node.body)
            return f"def {self._proto_str(node.prototype)} {self._expr_str(node.body)}"
        if isinstance(node, Declaration):
            return f"extern {self._proto_str(node.prototype)}"
        if isinstance(node, Prototype):
            return self._proto_str(node)
        return self._expr_str(node)

    def _proto_str(self, proto: Prototype) -> str:
        return f"{proto.name}({' '.join(proto.parameters)})"

    def _expr_str(self, expr: Expression) -> str:
        """Convert an expression to source text."""
        if isinstance(expr, NumberLiteral):
            return format_number(expr.value)
        if isinstance(expr, VariableReference):
            return expr.name
        if isinstance(expr, BinaryExpression):
            return f"({self._expr_str(expr.left)} {expr.operator} {self._expr_str(expr.right)})"
        if isinstance(expr, CallExpression):
            args = ", ".join(self._expr_str(a) for a in expr.arguments)
            return f"{expr.callee}({args})"
        raise TypeError(f"not an expression node: {type(expr).__name__}")
