"""Syntax tree definitions for the Miniscript language.

The node set is closed: four expression forms and two statement forms.
Nodes are frozen dataclasses holding the tokens they were parsed from,
so the interpreter can report errors against the right source line.
Code that walks the tree dispatches on these classes explicitly and
treats anything else as an internal error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .tokens import Token


@dataclass(frozen=True)
class Literal:
    # number, string, identifier or one of true/false/null
    token: Token


@dataclass(frozen=True)
class Grouping:
    expression: 'Expr'


@dataclass(frozen=True)
class Unary:
    operator: Token
    operand: 'Expr'


@dataclass(frozen=True)
class Binary:
    left: 'Expr'
    operator: Token
    right: 'Expr'


@dataclass(frozen=True)
class ExpressionStmt:
    expression: 'Expr'


@dataclass(frozen=True)
class PrintStmt:
    expression: 'Expr'


Expr = Union[Literal, Grouping, Unary, Binary]
Stmt = Union[ExpressionStmt, PrintStmt]


def format_ast(node: Union[Expr, Stmt]) -> str:
    """Render a node in parenthesised prefix form.

    `-123 * (45.67)` renders as `(* (- 123) (group 45.67))`.
    """
    if isinstance(node, Literal):
        return node.token.lexeme
    if isinstance(node, Grouping):
        return f"(group {format_ast(node.expression)})"
    if isinstance(node, Unary):
        return f"({node.operator.lexeme} {format_ast(node.operand)})"
    if isinstance(node, Binary):
        return f"({node.operator.lexeme} {format_ast(node.left)} {format_ast(node.right)})"
    if isinstance(node, ExpressionStmt):
        return format_ast(node.expression)
    if isinstance(node, PrintStmt):
        return f"print {format_ast(node.expression)}"
    raise TypeError(f"unknown node {node!r}")


def node_line(node: Union[Expr, Stmt]) -> int:
    """Return the source line of the first token in a node."""
    # iterative; trees can be deeper than the recursion limit
    while True:
        if isinstance(node, Literal):
            return node.token.line
        if isinstance(node, Unary):
            return node.operator.line
        if isinstance(node, Binary):
            node = node.left
        elif isinstance(node, (Grouping, ExpressionStmt, PrintStmt)):
            node = node.expression
        else:
            raise TypeError(f"unknown node {node!r}")
