"""Scanner for the Miniscript language.

The scanner makes a single left-to-right pass over the source and never
backtracks. Characters it cannot place are reported as compile errors
and skipped, so one stray character does not hide problems later in
the same source.

Newlines separate statements, so each one is emitted as a `NEWLINE`
token rather than skipped like other whitespace.
"""

from __future__ import annotations

from typing import List, Optional

from .errors import ErrorReporter, Stage
from .tokens import KEYWORDS, Token, TokenKind


SINGLE_CHAR_TOKENS = {
    '(': TokenKind.LEFT_PAREN,
    ')': TokenKind.RIGHT_PAREN,
    '{': TokenKind.LEFT_BRACE,
    '}': TokenKind.RIGHT_BRACE,
    ',': TokenKind.COMMA,
    '-': TokenKind.MINUS,
    '+': TokenKind.PLUS,
    ';': TokenKind.SEMICOLON,
    '*': TokenKind.STAR,
}

# first character -> (kind when followed by '=', kind when alone)
TWO_CHAR_TOKENS = {
    '=': (TokenKind.EQUAL_EQUAL, TokenKind.EQUAL),
    '<': (TokenKind.LESS_EQUAL, TokenKind.LESS),
    '>': (TokenKind.GREATER_EQUAL, TokenKind.GREATER),
}


def is_digit(c: str) -> bool:
    return '0' <= c <= '9'


class Scanner:
    def __init__(self, source: str, reporter: Optional[ErrorReporter] = None):
        self.source = source
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.tokens: List[Token] = []
        self.start = 0
        self.current = 0
        self.line = 1

    def scan_tokens(self) -> List[Token]:
        while not self.is_at_end():
            # We are at the beginning of the next lexeme.
            self.start = self.current
            self.scan_token()
        self.tokens.append(Token(TokenKind.END_OF_FILE, '', self.line))
        return self.tokens

    def scan_token(self) -> None:
        c = self.advance()
        if c in SINGLE_CHAR_TOKENS:
            self.add_token(SINGLE_CHAR_TOKENS[c])
        elif c in TWO_CHAR_TOKENS:
            with_equal, alone = TWO_CHAR_TOKENS[c]
            self.add_token(with_equal if self.match('=') else alone)
        elif c == '!':
            # there is no bare '!'; negation is spelled `not`
            if self.match('='):
                self.add_token(TokenKind.BANG_EQUAL)
            else:
                self.error(f"Unexpected character: {c}")
        elif c == '/':
            if self.match('/'):
                # The newline is left for the next pass so it still counts.
                while self.peek() != '\n' and not self.is_at_end():
                    self.advance()
            else:
                self.add_token(TokenKind.SLASH)
        elif c == '"':
            self.string()
        elif is_digit(c):
            self.number()
        elif c == '.':
            if is_digit(self.peek()):
                self.number()
            else:
                self.add_token(TokenKind.DOT)
        elif c.isalpha() or c == '_':
            self.identifier()
        elif c in ' \r\t':
            pass
        elif c == '\n':
            self.add_token(TokenKind.NEWLINE)
            self.line += 1
        else:
            self.error(f"Unexpected character: {c}")

    def identifier(self) -> None:
        while self.peek().isalnum() or self.peek() == '_':
            self.advance()
        text = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(text, TokenKind.IDENTIFIER))

    def string(self) -> None:
        start_line = self.line
        while not self.is_at_end():
            c = self.peek()
            if c == '"':
                if self.peek_next() != '"':
                    break
                # a doubled quote is an escaped quote
                self.advance()
            elif c == '\n':
                self.line += 1
            self.advance()

        if self.is_at_end():
            self.reporter.report_at_line(start_line, 'Unterminated string.', Stage.COMPILE)
            return

        # The closing quote.
        self.advance()
        self.add_token(TokenKind.STRING)

    def number(self) -> None:
        # A leading '.' has already been consumed for numbers like `.5`.
        if self.source[self.start] != '.':
            while is_digit(self.peek()):
                self.advance()
            # Look for a fractional part.
            if self.peek() == '.' and is_digit(self.peek_next()):
                self.advance()
        while is_digit(self.peek()):
            self.advance()
        self.add_token(TokenKind.NUMBER)

    def is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def advance(self) -> str:
        c = self.source[self.current]
        self.current += 1
        return c

    def match(self, expected: str) -> bool:
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self) -> str:
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def add_token(self, kind: TokenKind) -> None:
        text = self.source[self.start:self.current]
        self.tokens.append(Token(kind, text, self.line))

    def error(self, message: str) -> None:
        self.reporter.report_at_line(self.line, message, Stage.COMPILE)


def scan(source: str, reporter: Optional[ErrorReporter] = None) -> List[Token]:
    """Convert source text into a list of tokens ending with END_OF_FILE."""
    return Scanner(source, reporter).scan_tokens()
