"""Recursive-descent parser for the Miniscript language.

Grammar, from lowest to highest precedence:

    program    -> separator* (statement (separator+ | EOF))*
    statement  -> "print" expression | expression
    expression -> assignment
    assignment -> logical ("=" assignment)?
    logical    -> equality (("and" | "or") equality)*
    equality   -> comparison (("==" | "!=") comparison)*
    comparison -> term (("<" | "<=" | ">" | ">=") term)*
    term       -> factor (("+" | "-") factor)*
    factor     -> unary (("*" | "/") unary)*
    unary      -> ("not" | "-") unary | primary
    primary    -> NUMBER | STRING | IDENTIFIER | "true" | "false" | "null"
                | "(" expression ")"

A separator is `;` or a newline. Binary operators associate to the left,
assignment to the right. Whether an assignment target is a plain name is
checked by the interpreter, not here.

A syntax error abandons the current statement only: the parser reports
it, skips ahead to the next statement boundary and carries on, so a
single mistake does not hide the rest of the program.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from .ast import Binary, Expr, ExpressionStmt, Grouping, Literal, PrintStmt, Stmt, Unary
from .errors import Error, ErrorReporter, ParseError, Stage
from .scanner import scan
from .tokens import RESERVED, Token, TokenKind


SEPARATORS = (TokenKind.SEMICOLON, TokenKind.NEWLINE)

LITERALS = (
    TokenKind.NUMBER, TokenKind.STRING, TokenKind.IDENTIFIER,
    TokenKind.TRUE, TokenKind.FALSE, TokenKind.NULL,
)

# tokens after which parsing may resume following a syntax error
STATEMENT_STARTS = RESERVED | {TokenKind.PRINT}


class Parser:
    def __init__(self, tokens: List[Token], reporter: Optional[ErrorReporter] = None):
        self.tokens = tokens
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.pos = 0

    def parse(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while True:
            self.skip_separators()
            if self.is_at_end():
                break
            try:
                statements.append(self.parse_statement())
            except ParseError:
                self.synchronize()
            except RecursionError:
                self.error(self.peek(), 'Expression nested too deeply.')
                self.synchronize()
        return statements

    # Statements

    def parse_statement(self) -> Stmt:
        if self.match(TokenKind.PRINT):
            stmt: Stmt = PrintStmt(self.parse_expression())
        else:
            stmt = ExpressionStmt(self.parse_expression())
        self.end_statement()
        return stmt

    def end_statement(self) -> None:
        if self.is_at_end():
            return
        if not self.check(*SEPARATORS):
            raise self.error(self.peek(), "Expect newline or ';' after statement.")
        self.skip_separators()

    # Expressions

    def parse_expression(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        target = self.parse_logical()
        if self.match(TokenKind.EQUAL):
            equals = self.previous()
            value = self.parse_assignment()
            return Binary(target, equals, value)
        return target

    def parse_logical(self) -> Expr:
        return self.parse_binary(self.parse_equality, TokenKind.AND, TokenKind.OR)

    def parse_equality(self) -> Expr:
        return self.parse_binary(self.parse_comparison, TokenKind.EQUAL_EQUAL, TokenKind.BANG_EQUAL)

    def parse_comparison(self) -> Expr:
        return self.parse_binary(
            self.parse_term,
            TokenKind.LESS, TokenKind.LESS_EQUAL, TokenKind.GREATER, TokenKind.GREATER_EQUAL,
        )

    def parse_term(self) -> Expr:
        return self.parse_binary(self.parse_factor, TokenKind.PLUS, TokenKind.MINUS)

    def parse_factor(self) -> Expr:
        return self.parse_binary(self.parse_unary, TokenKind.STAR, TokenKind.SLASH)

    def parse_binary(self, operand, *operators: TokenKind) -> Expr:
        node = operand()
        while self.match(*operators):
            op_token = self.previous()
            right = operand()
            node = Binary(node, op_token, right)
        return node

    def parse_unary(self) -> Expr:
        if self.match(TokenKind.NOT, TokenKind.MINUS):
            op_token = self.previous()
            return Unary(op_token, self.parse_unary())
        return self.parse_primary()

    def parse_primary(self) -> Expr:
        if self.match(*LITERALS):
            return Literal(self.previous())
        if self.match(TokenKind.LEFT_PAREN):
            expr = self.parse_expression()
            self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)
        raise self.error(self.peek(), 'Expect expression.')

    # Token helpers

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def is_at_end(self) -> bool:
        return self.peek().kind == TokenKind.END_OF_FILE

    def check(self, *kinds: TokenKind) -> bool:
        if self.is_at_end():
            return False
        return self.peek().kind in kinds

    def advance(self) -> Token:
        if not self.is_at_end():
            self.pos += 1
        return self.previous()

    def match(self, *kinds: TokenKind) -> bool:
        if self.check(*kinds):
            self.advance()
            return True
        return False

    def consume(self, kind: TokenKind, message: str) -> Token:
        if self.check(kind):
            return self.advance()
        raise self.error(self.peek(), message)

    def skip_separators(self) -> None:
        while self.match(*SEPARATORS):
            pass

    def error(self, token: Token, message: str) -> ParseError:
        return ParseError(self.reporter.report_at_token(token, message, Stage.COMPILE))

    def synchronize(self) -> None:
        """Discard tokens up to the next statement boundary."""
        self.advance()
        while not self.is_at_end():
            if self.previous().kind in SEPARATORS:
                return
            if self.peek().kind in STATEMENT_STARTS:
                return
            self.advance()


def parse(tokens: List[Token], reporter: Optional[ErrorReporter] = None) -> Tuple[List[Stmt], List[Error]]:
    """Parse a token list, returning the statements and the diagnostics raised."""
    if reporter is None:
        reporter = ErrorReporter()
    already = len(reporter)
    statements = Parser(tokens, reporter).parse()
    return statements, reporter.errors[already:]


def parse_program(source: str, reporter: Optional[ErrorReporter] = None) -> List[Stmt]:
    """Scan and parse source text into a list of statements."""
    if reporter is None:
        reporter = ErrorReporter()
    tokens = scan(source, reporter)
    return Parser(tokens, reporter).parse()
