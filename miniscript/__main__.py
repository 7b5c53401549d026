"""CLI entry point for the Miniscript interpreter.

Usage:
    python -m miniscript [-v|-vv|-vvv|-vvvv] [--parser descent|grammar] [script]
    python -m miniscript [-v...] --emit-ast <script>
    python -m miniscript [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --parser      Front end to use: the hand-written parser (default) or
                the Lark grammar
  --emit-ast    Parse the given script and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Without a script the interpreter starts an interactive prompt. Debug
information is written to `debug.txt` in the current directory when
verbosity is greater than zero.
"""

import argparse
import json
import sys
from pathlib import Path

from .ast_json import ast_to_obj, ast_from_obj
from .errors import Error, ErrorReporter
from .interpreter import PARSERS, Session
from .types import NullVal, to_string

PROMPT = '> '


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def repl(session: Session) -> None:
    """Read one line at a time and run it, echoing any resulting value."""
    while True:
        try:
            line = input(PROMPT)
        except (EOFError, KeyboardInterrupt):
            print()
            break
        result = session.run(line)
        if not isinstance(result, (NullVal, Error)):
            print(to_string(result))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Miniscript interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--parser', choices=PARSERS, default='descent', help='parser front end to use')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='SCRIPT', help='emit AST JSON for the given script')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('script', nargs='?', help='Miniscript file to execute; omit for a prompt')
    args = parser.parse_args(argv)

    with Session(debug_level=args.v, parser=args.parser) as session:
        # Emit AST mode
        if args.emit_ast:
            program_file = Path(args.emit_ast)
            source = read_source(program_file)
            reporter = ErrorReporter()
            statements = session.parse(source, reporter)
            if reporter.had_error():
                reporter.dump()
                sys.exit(1)
            try:
                text = json.dumps(ast_to_obj(statements), ensure_ascii=False, indent=2)
            except RecursionError:
                print(f"Error: {program_file} is nested too deeply to serialize", file=sys.stderr)
                sys.exit(1)
            out_path = program_file.with_name(program_file.name + '.ast.json')
            with open(out_path, 'w', encoding='utf-8') as out:
                out.write(text)
            print(str(out_path))
            return

        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            if not ast_path.exists():
                print(f"Error: file {ast_path} not found", file=sys.stderr)
                sys.exit(1)
            with open(ast_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            session.execute(ast_from_obj(data))
            if session.had_runtime_error:
                sys.exit(1)
            return

        if not args.script:
            repl(session)
            return

        session.run(read_source(Path(args.script)))
        if session.had_compile_error or session.had_runtime_error:
            sys.exit(1)


if __name__ == '__main__':
    main()
