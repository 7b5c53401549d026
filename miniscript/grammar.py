"""Grammar-based parser for the Miniscript language.

This module parses the same language as `miniscript.parser`, but from a
declarative Lark grammar instead of hand-written descent:

1. **Lexing**: Lark's contextual lexer tokenizes the source. As in the
   scanner, every newline is a statement separator.

2. **Parsing**: the LALR parser builds a parse tree which a transformer
   turns into the same `Literal`/`Grouping`/`Unary`/`Binary` and
   statement nodes the descent parser produces. Terminal names match
   `TokenKind` member names so tokens convert one-to-one.

Unlike the descent parser there is no error recovery: the first syntax
error is reported and no statements are returned.
"""

from __future__ import annotations

from typing import List, Optional

from lark import Lark, Token as LarkToken
from lark.visitors import Transformer_NonRecursive
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError

from .ast import Binary, ExpressionStmt, Grouping, Literal, PrintStmt, Stmt, Unary
from .errors import ErrorReporter, ParseError, Stage
from .tokens import KEYWORDS, Token, TokenKind


MINISCRIPT_GRAMMAR = r"""
    program: _SEP* (statement _SEP+)* [statement]

    ?statement: "print" expression -> print_stmt
              | expression -> expr_stmt

    // Expressions with precedence
    ?expression: assignment
    ?assignment: logical EQUAL assignment -> binary
               | logical
    ?logical: equality
            | logical (AND | OR) equality -> binary
    ?equality: comparison
             | equality (EQUAL_EQUAL | BANG_EQUAL) comparison -> binary
    ?comparison: term
               | comparison (LESS | LESS_EQUAL | GREATER | GREATER_EQUAL) term -> binary
    ?term: factor
         | term (PLUS | MINUS) factor -> binary
    ?factor: unary
           | factor (STAR | SLASH) unary -> binary
    ?unary: (NOT | MINUS) unary -> unary
          | primary
    ?primary: NUMBER -> literal
            | STRING -> literal
            | IDENTIFIER -> literal
            | TRUE -> literal
            | FALSE -> literal
            | NULL -> literal
            | _LEFT_PAREN expression _RIGHT_PAREN -> grouping

    // Tokens
    AND: "and"
    OR: "or"
    NOT: "not"
    TRUE: "true"
    FALSE: "false"
    NULL: "null"
    EQUAL: "="
    EQUAL_EQUAL: "=="
    BANG_EQUAL: "!="
    LESS: "<"
    LESS_EQUAL: "<="
    GREATER: ">"
    GREATER_EQUAL: ">="
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    _LEFT_PAREN: "("
    _RIGHT_PAREN: ")"
    NUMBER: /[0-9]+(\.[0-9]+)?|\.[0-9]+/
    STRING: /"([^"]|"")*"/
    IDENTIFIER: /[^\W\d]\w*/
    _SEP: /[;\n]/

    // Comments and whitespace
    COMMENT: /\/\/[^\n]*/
    %ignore COMMENT
    %ignore /[ \t\r]+/
"""


MINISCRIPT_PARSER = Lark(
    MINISCRIPT_GRAMMAR,
    start='program',
    parser='lalr',
    lexer='contextual',
    maybe_placeholders=False,
)


def convert_token(token: LarkToken) -> Token:
    return Token(TokenKind[token.type], str(token), token.line)


class TreeBuilder(Transformer_NonRecursive):
    """Transforms the raw parse tree into Miniscript statements.

    The walk is iterative, so deeply nested source does not hit the
    interpreter recursion limit here.
    """

    def __init__(self, reporter: ErrorReporter):
        super().__init__()
        self.reporter = reporter

    def program(self, items) -> List[Stmt]:
        return list(items)

    def print_stmt(self, items):
        return PrintStmt(items[0])

    def expr_stmt(self, items):
        return ExpressionStmt(items[0])

    def binary(self, items):
        left, operator, right = items
        return Binary(left, convert_token(operator), right)

    def unary(self, items):
        return Unary(convert_token(items[0]), items[1])

    def grouping(self, items):
        return Grouping(items[0])

    def literal(self, items):
        token = convert_token(items[0])
        # reserved words have no grammar rule yet, so they lex as names
        if token.kind == TokenKind.IDENTIFIER and token.lexeme in KEYWORDS:
            error = self.reporter.report_at_token(token, 'Expect expression.', Stage.COMPILE)
            raise ParseError(error)
        return Literal(token)


def report_unexpected(exc: UnexpectedInput, reporter: ErrorReporter) -> None:
    if isinstance(exc, UnexpectedCharacters):
        reporter.report_at_line(exc.line, f"Unexpected character: {exc.char}", Stage.COMPILE)
    elif isinstance(exc, UnexpectedEOF):
        reporter.report(max(exc.line, 1), ' at end', 'Expect expression.', Stage.COMPILE)
    elif isinstance(exc, UnexpectedToken) and exc.token.type == '$END':
        reporter.report(exc.token.line or 1, ' at end', 'Expect expression.', Stage.COMPILE)
    elif isinstance(exc, UnexpectedToken):
        token = exc.token
        location = '' if token.type == '_SEP' and token.value == '\n' else f" at '{token.value}'"
        reporter.report(token.line, location, 'Unexpected token.', Stage.COMPILE)
    else:
        reporter.report_at_line(getattr(exc, 'line', 1) or 1, str(exc), Stage.COMPILE)


def parse_with_grammar(source: str, reporter: Optional[ErrorReporter] = None) -> List[Stmt]:
    """Parse Miniscript source with the Lark grammar.

    Syntax errors are reported to `reporter` and yield an empty program.
    """
    if reporter is None:
        reporter = ErrorReporter()
    try:
        tree = MINISCRIPT_PARSER.parse(source)
    except UnexpectedInput as exc:
        report_unexpected(exc, reporter)
        return []
    try:
        return TreeBuilder(reporter).transform(tree)
    except VisitError as exc:
        if isinstance(exc.orig_exc, ParseError):
            return []
        raise
