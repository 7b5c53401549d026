# Miniscript language package
# This package provides a scanner, parser and interpreter for Miniscript.
from .errors import Error, ErrorReporter, Stage
from .interpreter import run_program, run_file, Interpreter, Session

__all__ = [
    'run_program',
    'run_file',
    'Interpreter',
    'Session',
    'Error',
    'ErrorReporter',
    'Stage',
]
