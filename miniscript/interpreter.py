"""Interpreter for the Miniscript language.

This module holds the tree-walking evaluator and the `Session` driver
that chains scanner, parser and evaluator together. Statements run in
order against a single environment; a runtime error ends the statement
it occurs in and is reported, and the next statement runs as usual.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional, TextIO

from .ast import Binary, Expr, ExpressionStmt, Grouping, Literal, PrintStmt, Stmt, Unary, format_ast, node_line
from .environment import Environment
from .errors import Error, ErrorReporter, MiniscriptError, Stage, UndefinedVariable
from .grammar import parse_with_grammar
from .parser import Parser
from .scanner import scan
from .tokens import Token, TokenKind
from .types import (
    NULL, FALSE, TRUE, Value,
    format_number, from_bool, is_truthy, to_string, type_name,
)

# Holds the value of the most recent expression statement.
LAST_VALUE = '_'

PARSERS = ('descent', 'grammar')

# Longest string `*` may build, in characters.
MAX_STRING_LENGTH = 100_000_000

NESTED_TOO_DEEPLY = 'Expression nested too deeply.'

ARITHMETIC = {
    TokenKind.PLUS: lambda a, b: a + b,
    TokenKind.MINUS: lambda a, b: a - b,
    TokenKind.STAR: lambda a, b: a * b,
}

COMPARISONS = {
    TokenKind.LESS: lambda a, b: a < b,
    TokenKind.LESS_EQUAL: lambda a, b: a <= b,
    TokenKind.GREATER: lambda a, b: a > b,
    TokenKind.GREATER_EQUAL: lambda a, b: a >= b,
    TokenKind.EQUAL_EQUAL: lambda a, b: a == b,
    TokenKind.BANG_EQUAL: lambda a, b: a != b,
}


def divide(a: float, b: float) -> float:
    # IEEE-754 division: x/0 is a signed infinity, 0/0 is nan
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def strip_suffix(text: str, suffix: str) -> str:
    if suffix and text.endswith(suffix):
        return text[:-len(suffix)]
    return text


class Interpreter:
    """Core interpreter that executes Miniscript statements."""
    def __init__(
        self,
        env: Optional[Environment] = None,
        out: Optional[Callable[[str], None]] = None,
        debug_level: int = 0,
        debug_file: str = 'debug.txt',
    ):
        self.global_env = env if env is not None else Environment()
        self.out = out if out is not None else print
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 else None

    def debug(self, msg: str, level: int = 1):
        if self.debug_level >= level and self.debug_fp:
            self.debug_fp.write(msg + '\n')
            self.debug_fp.flush()

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def run(self, statements: List[Stmt], reporter: ErrorReporter, env: Optional[Environment] = None) -> Value:
        """Execute statements in order and return the last statement's value.

        A statement that fails yields the reported `Error` as its value.
        """
        if env is None:
            env = self.global_env
        result: Value = NULL
        for stmt in statements:
            try:
                if self.debug_level >= 2:
                    self.debug(f"execute {format_ast(stmt)}", 2)
                result = self.execute(stmt, env)
            except MiniscriptError as ex:
                result = reporter.report_at_token(ex.token, ex.message, Stage.RUNTIME)
            except RecursionError:
                result = reporter.report_at_line(node_line(stmt), NESTED_TOO_DEEPLY, Stage.RUNTIME)
            self.debug(f"result {result!r}", 3)
        return result

    def execute(self, node: Stmt, env: Environment) -> Value:
        if isinstance(node, ExpressionStmt):
            value = self.evaluate(node.expression, env)
            env.globals[LAST_VALUE] = value
            return value
        if isinstance(node, PrintStmt):
            value = self.evaluate(node.expression, env)
            self.out(to_string(value))
            return NULL
        raise TypeError(f"unknown statement {node!r}")

    def evaluate(self, node: Expr, env: Environment) -> Value:
        if isinstance(node, Literal):
            return self.evaluate_literal(node.token, env)
        if isinstance(node, Grouping):
            return self.evaluate(node.expression, env)
        if isinstance(node, Unary):
            operand = self.evaluate(node.operand, env)
            if not isinstance(operand, float):
                raise MiniscriptError(
                    node.operator,
                    f"Operand of '{node.operator.lexeme}' must be a number, got {type_name(operand)}.",
                )
            if node.operator.kind == TokenKind.MINUS:
                return -operand
            if node.operator.kind == TokenKind.NOT:
                return from_bool(not is_truthy(operand))
            raise MiniscriptError(node.operator, f"Unknown unary operator '{node.operator.lexeme}'.")
        if isinstance(node, Binary):
            op = node.operator.kind
            if op == TokenKind.EQUAL:
                return self.assign(node, env)
            left = self.evaluate(node.left, env)
            # Short-circuit for `and` and `or`
            if op == TokenKind.AND:
                if not is_truthy(left):
                    return FALSE
                return from_bool(is_truthy(self.evaluate(node.right, env)))
            if op == TokenKind.OR:
                if is_truthy(left):
                    return TRUE
                return from_bool(is_truthy(self.evaluate(node.right, env)))
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.operator, left, right)
        raise TypeError(f"unknown expression {node!r}")

    def evaluate_literal(self, token: Token, env: Environment) -> Value:
        kind = token.kind
        if kind == TokenKind.NUMBER:
            return float(token.lexeme)
        if kind == TokenKind.STRING:
            # strip the quotes and unescape doubled quotes
            return token.lexeme[1:-1].replace('""', '"')
        if kind == TokenKind.TRUE:
            return TRUE
        if kind == TokenKind.FALSE:
            return FALSE
        if kind == TokenKind.NULL:
            return NULL
        if kind == TokenKind.IDENTIFIER:
            try:
                return env.get(token.lexeme)
            except UndefinedVariable:
                raise MiniscriptError(
                    token, f"Undefined Identifier: '{token.lexeme}' is unknown in this context."
                ) from None
        raise MiniscriptError(token, f"Unexpected literal '{token.lexeme}'.")

    def assign(self, node: Binary, env: Environment) -> Value:
        target = node.left
        if not (isinstance(target, Literal) and target.token.kind == TokenKind.IDENTIFIER):
            raise MiniscriptError(node.operator, 'Invalid assignment target.')
        value = self.evaluate(node.right, env)
        env.assign(target.token.lexeme, value)
        self.debug(f"assign {target.token.lexeme} = {value!r}", 4)
        return value

    def apply_binary_op(self, operator: Token, a: Value, b: Value) -> Value:
        op = operator.kind
        result: Optional[Value] = None
        if isinstance(a, float) and isinstance(b, float):
            if op in ARITHMETIC:
                result = ARITHMETIC[op](a, b)
            elif op == TokenKind.SLASH:
                result = divide(a, b)
            elif op in COMPARISONS:
                result = from_bool(COMPARISONS[op](a, b))
        elif isinstance(a, str) and isinstance(b, str):
            if op == TokenKind.PLUS:
                result = a + b
            elif op == TokenKind.MINUS:
                result = strip_suffix(a, b)
            elif op in COMPARISONS:
                result = from_bool(COMPARISONS[op](a, b))
        elif isinstance(a, str) and isinstance(b, float):
            result = self.apply_string_number_op(operator, a, b)
        elif isinstance(a, float) and isinstance(b, str):
            if op == TokenKind.PLUS:
                result = format_number(a) + b
        if result is None:
            raise MiniscriptError(
                operator,
                f"Operator '{operator.lexeme}' is not supported for {type_name(a)} and {type_name(b)}.",
            )
        return result

    def apply_string_number_op(self, operator: Token, text: str, number: float) -> Optional[Value]:
        op = operator.kind
        if op == TokenKind.PLUS:
            return text + format_number(number)
        if op == TokenKind.MINUS:
            return strip_suffix(text, format_number(number))
        if op not in (TokenKind.STAR, TokenKind.SLASH):
            return None
        if not math.isfinite(number):
            raise MiniscriptError(operator, f"Cannot apply '{operator.lexeme}' to a string and {format_number(number)}.")
        if op == TokenKind.STAR:
            count = math.floor(number)
            # negative counts repeat zero times
            if count <= 0 or not text:
                return ''
            if len(text) * count > MAX_STRING_LENGTH:
                raise MiniscriptError(
                    operator, f"Repeating a string {format_number(number)} times exceeds the string size limit."
                )
            return text * count
        divisor = math.ceil(number)
        if divisor == 0:
            raise MiniscriptError(operator, 'Division by zero.')
        length = math.floor(len(text) / divisor)
        return text[:max(length, 0)]


class Session:
    """Runs source text through the whole pipeline.

    The environment persists across `run` calls, so a REPL keeps its
    variables between lines. Each run gets a fresh `ErrorReporter`,
    available afterwards as `reporter`.
    """
    def __init__(
        self,
        debug_level: int = 0,
        debug_file: str = 'debug.txt',
        parser: str = 'descent',
        out: Optional[Callable[[str], None]] = None,
        err: Optional[TextIO] = None,
    ):
        if parser not in PARSERS:
            raise ValueError(f"unknown parser {parser!r}; expected one of {', '.join(PARSERS)}")
        self.env = Environment()
        self.interpreter = Interpreter(self.env, out=out, debug_level=debug_level, debug_file=debug_file)
        self.parser = parser
        self.err = err
        self.reporter = ErrorReporter()
        self.had_compile_error = False
        self.had_runtime_error = False

    def parse(self, source: str, reporter: ErrorReporter) -> List[Stmt]:
        if self.parser == 'grammar':
            return parse_with_grammar(source, reporter)
        tokens = scan(source, reporter)
        if self.interpreter.debug_level >= 3:
            self.interpreter.debug('tokens ' + ', '.join(f"{t.kind.name} {t.lexeme!r}" for t in tokens), 3)
        return Parser(tokens, reporter).parse()

    def run(self, source: str) -> Value:
        reporter = ErrorReporter()
        statements = self.parse(source, reporter)
        self.interpreter.debug(f"parsed {len(source)} chars into {len(statements)} statements")
        return self.execute(statements, reporter)

    def execute(self, statements: List[Stmt], reporter: Optional[ErrorReporter] = None) -> Value:
        """Evaluate already parsed statements and report diagnostics."""
        if reporter is None:
            reporter = ErrorReporter()
        result = self.interpreter.run(statements, reporter)
        self.reporter = reporter
        self.had_compile_error = reporter.had_compile_error()
        self.had_runtime_error = reporter.had_runtime_error()
        self.interpreter.debug(f"finished with {len(reporter)} diagnostics")
        if reporter.had_error():
            reporter.dump(self.err)
        return result

    def run_file(self, path: str) -> Value:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
        return self.run(source)

    def close(self):
        self.interpreter.close()

    def __enter__(self) -> 'Session':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def run_program(source: str, debug_level: int = 0, parser: str = 'descent') -> Value:
    """Convenience function to run a Miniscript program from a source string."""
    with Session(debug_level=debug_level, parser=parser) as session:
        return session.run(source)


def run_file(file_path: str, debug_level: int = 0, parser: str = 'descent') -> Session:
    """Run a Miniscript file, returning the session so callers can check its error flags."""
    session = Session(debug_level=debug_level, parser=parser)
    try:
        session.run_file(file_path)
    finally:
        session.close()
    return session
