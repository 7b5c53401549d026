import pytest

from miniscript.ast import Binary, ExpressionStmt, Grouping, Literal, PrintStmt, Unary, format_ast
from miniscript.errors import ErrorReporter, Stage
from miniscript.parser import parse, parse_program
from miniscript.scanner import scan
from miniscript.tokens import Token, TokenKind


def render(source):
    return [format_ast(stmt) for stmt in parse_program(source)]


def test_precedence_and_grouping():
    assert render('-123 * (45.67)') == ['(* (- 123) (group 45.67))']
    assert render('1+2*3+4/5*6') == ['(+ (+ 1 (* 2 3)) (* (/ 4 5) 6))']


def test_binary_operators_are_left_associative():
    assert render('1 - 2 - 3') == ['(- (- 1 2) 3)']
    assert render('a or b and c') == ['(and (or a b) c)']


def test_assignment_is_right_associative():
    assert render('a = b = 2') == ['(= a (= b 2))']


def test_comparison_binds_tighter_than_logic():
    assert render('not 1 < 2 and x == 3') == ['(and (< (not 1) 2) (== x 3))']


def test_print_and_expression_statements():
    statements = parse_program('print 1; 2\n\n3;')
    assert [type(s) for s in statements] == [PrintStmt, ExpressionStmt, ExpressionStmt]
    assert format_ast(statements[0]) == 'print 1'


def test_tree_holds_source_tokens():
    [stmt] = parse_program('-(x)')
    assert stmt == ExpressionStmt(
        Unary(
            Token(TokenKind.MINUS, '-', 1),
            Grouping(Literal(Token(TokenKind.IDENTIFIER, 'x', 1))),
        )
    )


def test_empty_and_separator_only_programs():
    assert parse_program('') == []
    assert parse_program(';;\n; // nothing\n') == []


def test_parse_returns_statements_and_diagnostics():
    statements, errors = parse(scan('1 +\n2'))
    assert [format_ast(s) for s in statements] == ['2']
    assert [str(e) for e in errors] == ['[line 1] Compile Error: Expect expression.']


def test_missing_close_paren_at_end():
    reporter = ErrorReporter()
    assert parse_program('(1 + 2', reporter) == []
    assert str(reporter.errors[0]) == "[line 1] Compile Error at end: Expect ')' after expression."


def test_missing_separator_is_reported():
    reporter = ErrorReporter()
    statements = parse_program('1 2\n3', reporter)
    assert [format_ast(s) for s in statements] == ['3']
    assert str(reporter.errors[0]) == "[line 1] Compile Error at '2': Expect newline or ';' after statement."


def test_recovery_resumes_after_separator():
    reporter = ErrorReporter()
    statements = parse_program('print 1\nprint (2 +;\nprint 3', reporter)
    assert [format_ast(s) for s in statements] == ['print 1', 'print 3']
    assert len(reporter) == 1
    assert reporter.had_compile_error()


def test_recovery_stops_at_statement_keyword():
    reporter = ErrorReporter()
    statements = parse_program(') ) print 4', reporter)
    assert [format_ast(s) for s in statements] == ['print 4']
    assert str(reporter.errors[0]) == "[line 1] Compile Error at ')': Expect expression."


def test_reserved_keyword_is_not_an_expression():
    reporter = ErrorReporter()
    statements = parse_program('var x\nprint 1', reporter)
    assert [format_ast(s) for s in statements] == ['print 1']
    assert str(reporter.errors[0]) == "[line 1] Compile Error at 'var': Expect expression."


def test_invalid_assignment_target_still_parses():
    [stmt] = parse_program('1 = 2')
    assert isinstance(stmt.expression, Binary)
    assert stmt.expression.operator.kind == TokenKind.EQUAL


@pytest.mark.parametrize('nested', [
    '(' * 1200 + '1' + ')' * 1200,
    '-' * 3000 + '1',
])
def test_deep_nesting_is_reported_and_skipped(nested):
    reporter = ErrorReporter()
    statements = parse_program(nested + '\nprint 1', reporter)
    assert [format_ast(s) for s in statements] == ['print 1']
    assert [e.message for e in reporter.errors] == ['Expression nested too deeply.']
    assert reporter.errors[0].stage == Stage.COMPILE
    assert reporter.errors[0].line == 1
