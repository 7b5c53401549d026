from pathlib import Path

from miniscript.interpreter import Session

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_1(capsys):
    with open(EXAMPLES / 'program_1.ms', 'r', encoding='utf-8') as f:
        source = f.read()
    session = Session()
    session.run(source)
    out = capsys.readouterr().out.strip()
    assert out == 'Hello World!!'
