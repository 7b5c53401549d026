"""Runtime value helpers for Miniscript.

Miniscript has three kinds of ordinary value, each mapped onto a plain
Python object: `null` is the `NULL` marker, numbers are `float` and
strings are `str`. There is no boolean type; truth is encoded as `1.0`
and `0.0`. A statement that fails at runtime produces an `Error` value
instead, so callers can see what went wrong without an exception.
"""

from __future__ import annotations

import math
from typing import Any, Union

from .errors import Error


class NullVal:
    """Marker object for the Miniscript `null` value."""
    def __repr__(self) -> str:
        return 'null'

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, NullVal)

    def __hash__(self) -> int:
        return hash(NullVal)


NULL = NullVal()

Value = Union[NullVal, float, str, Error]

TRUE = 1.0
FALSE = 0.0


def from_bool(flag: bool) -> float:
    return TRUE if flag else FALSE


def format_number(value: float) -> str:
    """Render a number the way Miniscript prints it.

    Whole numbers print without a fractional part (`2`, not `2.0`);
    everything else uses the shortest round-trip representation.
    """
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def to_string(value: Value) -> str:
    """Convert a value to its printed text."""
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, NullVal):
        return 'null'
    if isinstance(value, Error):
        return str(value)
    return str(value)


def type_name(value: Value) -> str:
    """Return the Miniscript type name of a runtime value."""
    if isinstance(value, float):
        return 'Number'
    if isinstance(value, str):
        return 'String'
    if isinstance(value, NullVal):
        return 'Null'
    if isinstance(value, Error):
        return 'Error'
    return type(value).__name__


def is_truthy(value: Value) -> bool:
    # 0, "" and null are falsy; everything else is truthy
    if isinstance(value, float):
        return value != 0.0
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, NullVal):
        return False
    return True
