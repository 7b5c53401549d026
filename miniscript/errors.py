"""Diagnostics for Miniscript.

Errors never abort the pipeline. Every stage reports into a single
`ErrorReporter` that the driver creates per run and passes along; the
driver inspects it afterwards to decide what to print and how to exit.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, TextIO

from .tokens import Token, TokenKind


class Stage(Enum):
    COMPILE = 'Compile'
    RUNTIME = 'Runtime'

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Error:
    line: int
    location: str
    message: str
    stage: Stage

    def __str__(self) -> str:
        return f"[line {self.line}] {self.stage} Error{self.location}: {self.message}"


class ErrorReporter:
    """Accumulates diagnostics from the scanner, parser and interpreter."""

    def __init__(self):
        self.errors: List[Error] = []

    def report_at_token(self, token: Token, message: str, stage: Stage = Stage.COMPILE) -> Error:
        if token.kind == TokenKind.END_OF_FILE:
            location = ' at end'
        elif token.kind == TokenKind.NEWLINE:
            location = ''
        else:
            location = f" at '{token.lexeme}'"
        return self.report(token.line, location, message, stage)

    def report_at_line(self, line: int, message: str, stage: Stage = Stage.COMPILE) -> Error:
        return self.report(line, '', message, stage)

    def report(self, line: int, location: str, message: str, stage: Stage) -> Error:
        error = Error(line, location, message, stage)
        self.errors.append(error)
        return error

    def had_compile_error(self) -> bool:
        return any(e.stage == Stage.COMPILE for e in self.errors)

    def had_runtime_error(self) -> bool:
        return any(e.stage == Stage.RUNTIME for e in self.errors)

    def had_error(self) -> bool:
        return len(self.errors) > 0

    def dump(self, file: Optional[TextIO] = None) -> None:
        """Print one line per diagnostic.

        Consecutive diagnostics on the same source line are collapsed to
        the first one, since later ones are usually fallout from it.
        """
        if file is None:
            file = sys.stderr
        current_line = None
        for error in self.errors:
            if error.line != current_line:
                print(error, file=file)
                current_line = error.line

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[Error]:
        return iter(self.errors)


class ParseError(Exception):
    """Raised inside the parser to unwind to the enclosing statement."""
    def __init__(self, error: Error):
        super().__init__(str(error))
        self.error = error


class MiniscriptError(Exception):
    """Exception type used to propagate Miniscript runtime errors."""
    def __init__(self, token: Token, message: str):
        super().__init__(f"MiniscriptError: {message}")
        self.token = token
        self.message = message


class UndefinedVariable(LookupError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name
