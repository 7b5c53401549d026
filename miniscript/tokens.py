"""Token definitions for Miniscript.

A token is the smallest unit the parser works with. The scanner produces
an ordered list of tokens from source text, always terminated by a
synthetic `END_OF_FILE` token.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict


class TokenKind(Enum):
    # Single-character tokens.
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    COMMA = auto()
    DOT = auto()
    MINUS = auto()
    PLUS = auto()
    SEMICOLON = auto()
    SLASH = auto()
    STAR = auto()

    # One or two character tokens.
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()

    # Literals.
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords.
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FOR = auto()
    FUN = auto()
    IF = auto()
    NOT = auto()
    NULL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()

    NEWLINE = auto()
    END_OF_FILE = auto()


KEYWORDS: Dict[str, TokenKind] = {
    'and': TokenKind.AND,
    'class': TokenKind.CLASS,
    'else': TokenKind.ELSE,
    'false': TokenKind.FALSE,
    'for': TokenKind.FOR,
    'fun': TokenKind.FUN,
    'if': TokenKind.IF,
    'not': TokenKind.NOT,
    'null': TokenKind.NULL,
    'or': TokenKind.OR,
    'print': TokenKind.PRINT,
    'return': TokenKind.RETURN,
    'super': TokenKind.SUPER,
    'this': TokenKind.THIS,
    'true': TokenKind.TRUE,
    'var': TokenKind.VAR,
    'while': TokenKind.WHILE,
}

# Keywords with no statement form yet; the parser still treats them as
# statement starts when recovering from a syntax error.
RESERVED = frozenset(
    kind for name, kind in KEYWORDS.items()
    if name in ('class', 'else', 'for', 'fun', 'if', 'return', 'super', 'this', 'var', 'while')
)


@dataclass(frozen=True)
class Token:
    """One lexical unit: its kind, the exact source text and its line."""
    kind: TokenKind
    lexeme: str
    line: int

    def __str__(self) -> str:
        return f"{self.kind.name} {self.lexeme}"
