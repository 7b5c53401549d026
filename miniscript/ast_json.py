"""JSON serialization/deserialization for Miniscript syntax trees.

This module converts between the statement/expression dataclasses and
plain Python dict/list structures suitable for JSON encoding. Tokens are
stored with their kind name, lexeme and line so a tree read back from
JSON reports errors against the same source lines.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .ast import Binary, ExpressionStmt, Grouping, Literal, PrintStmt, Stmt, Unary
from .tokens import Token, TokenKind


def token_to_obj(token: Token) -> Dict[str, Any]:
    return {"kind": token.kind.name, "lexeme": token.lexeme, "line": token.line}


def token_from_obj(o: Dict[str, Any]) -> Token:
    return Token(TokenKind[o["kind"]], o["lexeme"], o["line"])


def ast_to_obj(node: Any) -> Any:
    if isinstance(node, list):
        return {"type": "Program", "body": [ast_to_obj(n) for n in node]}
    if isinstance(node, ExpressionStmt):
        return {"type": "ExpressionStmt", "expression": ast_to_obj(node.expression)}
    if isinstance(node, PrintStmt):
        return {"type": "PrintStmt", "expression": ast_to_obj(node.expression)}
    if isinstance(node, Literal):
        return {"type": "Literal", "token": token_to_obj(node.token)}
    if isinstance(node, Grouping):
        return {"type": "Grouping", "expression": ast_to_obj(node.expression)}
    if isinstance(node, Unary):
        return {
            "type": "Unary",
            "operator": token_to_obj(node.operator),
            "operand": ast_to_obj(node.operand),
        }
    if isinstance(node, Binary):
        return {
            "type": "Binary",
            "left": ast_to_obj(node.left),
            "operator": token_to_obj(node.operator),
            "right": ast_to_obj(node.right),
        }
    raise TypeError(f"Unsupported AST node for JSON: {type(node).__name__}")


def ast_from_obj(o: Any) -> Any:
    if not isinstance(o, dict) or "type" not in o:
        raise ValueError("Invalid AST JSON: missing type")
    t = o["type"]
    if t == "Program":
        body: List[Stmt] = [ast_from_obj(n) for n in o.get("body", [])]
        return body
    if t == "ExpressionStmt":
        return ExpressionStmt(ast_from_obj(o["expression"]))
    if t == "PrintStmt":
        return PrintStmt(ast_from_obj(o["expression"]))
    if t == "Literal":
        return Literal(token_from_obj(o["token"]))
    if t == "Grouping":
        return Grouping(ast_from_obj(o["expression"]))
    if t == "Unary":
        return Unary(token_from_obj(o["operator"]), ast_from_obj(o["operand"]))
    if t == "Binary":
        return Binary(
            ast_from_obj(o["left"]),
            token_from_obj(o["operator"]),
            ast_from_obj(o["right"]),
        )
    raise ValueError(f"Unknown AST node type: {t}")
