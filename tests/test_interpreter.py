import math

import pytest

from miniscript.environment import Environment
from miniscript.errors import Error, ErrorReporter, Stage
from miniscript.interpreter import LAST_VALUE, Interpreter, Session, run_program
from miniscript.parser import parse_program
from miniscript.types import NULL


def evaluate(source):
    """Run source in a fresh session and return its final value."""
    return run_program(source)


@pytest.mark.parametrize('source, expected', [
    ('1+2*3+4/5*6', 11.8),
    ('(1 + 2) * 3', 9.0),
    ('-4 - -2', -2.0),
    ('10 / 4', 2.5),
    ('2 < 3', 1.0),
    ('3 <= 2', 0.0),
    ('2 == 2', 1.0),
    ('2 != 2', 0.0),
    ('true', 1.0),
    ('false', 0.0),
])
def test_number_arithmetic_and_comparison(source, expected):
    assert evaluate(source) == pytest.approx(expected)


def test_division_by_zero_follows_ieee():
    assert evaluate('1 / 0') == math.inf
    assert evaluate('-1 / 0') == -math.inf
    assert math.isnan(evaluate('0 / 0'))


@pytest.mark.parametrize('source, expected', [
    ('"12345" + 6', '123456'),
    ('6 + "12345"', '612345'),
    ('"x" + 1.5', 'x1.5'),
    ('"abcdefg" - "efg"', 'abcd'),
    ('"abcdefg" - "testing"', 'abcdefg'),
    ('"abc" - ""', 'abc'),
    ('"item42" - 42', 'item'),
    ('"item42" - 7', 'item42'),
    ('"123" * 3', '123123123'),
    ('"ab" * 2.9', 'abab'),
    ('"ab" * -1', ''),
    ('"" * 10000000000000000000', ''),
    ('"12345678" / 2', '1234'),
    ('"12345678" / 2.5', '12'),
    ('"12345678" / -2', ''),
])
def test_string_operators(source, expected):
    assert evaluate(source) == expected


def test_doubled_quotes_unescape():
    assert evaluate('"Hello""World"') == 'Hello"World'
    assert evaluate('"Hello""World"""') == 'Hello"World"'


def test_string_comparison_is_lexicographic():
    assert evaluate('"apple" < "banana"') == 1.0
    assert evaluate('"b" >= "ba"') == 0.0
    assert evaluate('"same" == "same"') == 1.0


def test_truthiness_and_short_circuit():
    assert evaluate('0 or ""') == 0.0
    assert evaluate('"x" and 2') == 1.0
    assert evaluate('null or 0') == 0.0
    assert evaluate('not 0') == 1.0
    assert evaluate('not 3') == 0.0
    # right operands are never evaluated, so the undefined names are fine
    assert evaluate('0 and missing') == 0.0
    assert evaluate('1 or missing') == 1.0


def test_literals():
    assert evaluate('null') is NULL
    assert evaluate('.5') == 0.5
    assert evaluate('""') == ''


def test_assignment_chains_and_persists():
    session = Session()
    assert session.run('a = b = 2') == 2.0
    assert session.env.get('a') == 2.0
    assert session.env.get('b') == 2.0
    session.run('a = a + 1')
    assert session.run('a') == 3.0


def test_last_value_is_kept_in_reserved_variable():
    session = Session()
    session.run('40 + 2')
    assert session.env.get(LAST_VALUE) == 42.0
    assert session.run('_ * 2') == 84.0


def test_print_writes_to_injected_sink():
    lines = []
    session = Session(out=lines.append)
    result = session.run('print 1 + 1\nprint "a" + "b"\nprint null\nprint 0.25')
    assert lines == ['2', 'ab', 'null', '0.25']
    assert result is NULL


def test_undefined_identifier_reports_one_runtime_error(capsys):
    session = Session()
    result = session.run('print missing')
    assert isinstance(result, Error)
    assert result.stage == Stage.RUNTIME
    assert len(session.reporter) == 1
    assert "'missing'" in result.message
    assert session.had_runtime_error
    assert not session.had_compile_error
    assert capsys.readouterr().err == (
        "[line 1] Runtime Error at 'missing': Undefined Identifier: 'missing' is unknown in this context.\n"
    )


@pytest.mark.parametrize('source, message', [
    ('1 = 2', 'Invalid assignment target.'),
    ('(a) = 2', 'Invalid assignment target.'),
    ('-"abc"', "Operand of '-' must be a number, got String."),
    ('not "abc"', "Operand of 'not' must be a number, got String."),
    ('1 - "a"', "Operator '-' is not supported for Number and String."),
    ('"a" * "b"', "Operator '*' is not supported for String and String."),
    ('"a" < 1', "Operator '<' is not supported for String and Number."),
    ('null + 1', "Operator '+' is not supported for Null and Number."),
    ('"abc" / 0', 'Division by zero.'),
    ('"abc" / -0.5', 'Division by zero.'),
    ('"abc" * (1 / 0)', "Cannot apply '*' to a string and inf."),
    ('"x" * (100000*100000*100000*100000)',
     'Repeating a string 100000000000000000000 times exceeds the string size limit.'),
    ('"x" * 10000000000000000000',
     'Repeating a string 10000000000000000000 times exceeds the string size limit.'),
])
def test_runtime_errors(source, message, capsys):
    session = Session()
    result = session.run(source)
    assert isinstance(result, Error)
    assert result.message == message
    assert result.stage == Stage.RUNTIME


def test_too_deep_expression_is_a_runtime_error(capsys):
    session = Session()
    result = session.run('print "a" ' + '+ "a" ' * 3000 + '\nprint "after"')
    assert result is NULL
    captured = capsys.readouterr()
    assert captured.out == 'after\n'
    assert captured.err == '[line 1] Runtime Error: Expression nested too deeply.\n'
    assert session.had_runtime_error


def test_grammar_parser_hands_deep_nesting_to_the_evaluator(capsys):
    session = Session(parser='grammar')
    session.run('(' * 1200 + '1' + ')' * 1200 + '\nprint 2')
    captured = capsys.readouterr()
    assert captured.out == '2\n'
    assert 'Runtime Error: Expression nested too deeply.' in captured.err
    assert not session.had_compile_error


def test_failed_statement_has_no_later_side_effects(capsys):
    session = Session()
    session.run('a = 1\na = missing + (b = 5)\nprint a')
    assert capsys.readouterr().out == '1\n'
    assert 'b' not in session.env.globals


def test_runtime_error_does_not_stop_later_statements(capsys):
    session = Session()
    result = session.run('print "a" * "b"; print "after"; 7')
    assert result == 7.0
    captured = capsys.readouterr()
    assert captured.out == 'after\n'
    assert "Operator '*'" in captured.err


def test_interpreter_runs_against_given_environment():
    env = Environment()
    env.define('x', 5.0)
    reporter = ErrorReporter()
    interp = Interpreter(env)
    assert interp.run(parse_program('x = x * 2'), reporter) == 10.0
    assert env.get('x') == 10.0
    assert not reporter.had_error()


def test_grammar_parser_session(capsys):
    session = Session(parser='grammar')
    session.run('a = 1\nprint a + 1')
    assert capsys.readouterr().out == '2\n'


def test_unknown_parser_is_rejected():
    with pytest.raises(ValueError):
        Session(parser='yacc')


def test_debug_file_records_execution(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    with Session(debug_level=4, debug_file=str(debug_file), out=lambda line: None) as session:
        session.run('a = 1\nprint a')
    log = debug_file.read_text(encoding='utf-8')
    assert "tokens IDENTIFIER 'a', EQUAL '='" in log
    assert 'execute (= a 1)' in log
    assert 'assign a = 1.0' in log
    assert 'execute print a' in log
    assert 'parsed 13 chars into 2 statements' in log
