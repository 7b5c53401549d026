from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from miniscript.errors import UndefinedVariable


class Environment:
    """Variable scopes kept as a stack of frames.

    Frame 0 is the global scope and lives as long as the environment.
    Inner frames are pushed on block entry and popped on exit; lookups
    walk from the innermost frame outwards, so inner names shadow outer
    ones.
    """
    def __init__(self):
        self.frames: List[Dict[str, Any]] = [{}]

    @property
    def globals(self) -> Dict[str, Any]:
        return self.frames[0]

    @property
    def depth(self) -> int:
        return len(self.frames)

    def push(self) -> None:
        self.frames.append({})

    def pop(self) -> Dict[str, Any]:
        if len(self.frames) == 1:
            raise ValueError('cannot pop the global scope')
        return self.frames.pop()

    @contextmanager
    def scope(self) -> Iterator['Environment']:
        self.push()
        try:
            yield self
        finally:
            self.pop()

    def get(self, name: str) -> Any:
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        raise UndefinedVariable(name)

    def define(self, name: str, value: Any) -> None:
        # always binds in the innermost frame, shadowing any outer binding
        self.frames[-1][name] = value

    def assign(self, name: str, value: Any) -> None:
        # Update the frame that owns the name; unknown names become globals
        for frame in reversed(self.frames):
            if name in frame:
                frame[name] = value
                return
        self.frames[0][name] = value
