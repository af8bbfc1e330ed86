"""
Variable environment for the interpreter.

Scopes are frames held in a flat list. Each frame records the index of
its enclosing frame, so lookups walk outward by index instead of through
nested objects. Frame 0 is the global scope and is never popped.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from ..values import Value


class ScopeError(Exception):
    """Base class for failed environment lookups and definitions."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(message)


class VariableAlreadyDefined(ScopeError):
    """The name already exists in the current frame."""

    def __init__(self, name: str):
        super().__init__(name, f"variable '{name}' is already defined in this scope")


class UndefinedVariable(ScopeError):
    """The name exists in no frame of the chain."""

    def __init__(self, name: str):
        super().__init__(name, f"undefined variable '{name}'")


class GlobalScopeExit(RuntimeError):
    """Attempt to pop the global frame; always an interpreter bug."""
    pass


@dataclass
class Frame:
    """A single scope containing variable bindings."""
    variables: Dict[str, Value] = field(default_factory=dict)
    enclosing: Optional[int] = None


class Environment:
    """
    Lexically scoped variable storage.

    Usage:
        env = Environment()
        env.define("a", number_val(1))
        with env.scope():
            env.define("a", number_val(2))   # shadows the global
            env.get("a")                     # 2
        env.get("a")                         # 1
    """

    def __init__(self):
        self.frames: List[Frame] = [Frame()]
        self.current = 0

    @property
    def depth(self) -> int:
        """Number of frames in the chain, counting the global frame."""
        return len(self.frames)

    def _chain(self) -> Iterator[Frame]:
        """Frames from the innermost outward."""
        index: Optional[int] = self.current
        while index is not None:
            frame = self.frames[index]
            yield frame
            index = frame.enclosing

    def define(self, name: str, value: Value) -> None:
        """Create a variable in the current frame."""
        frame = self.frames[self.current]
        if name in frame.variables:
            raise VariableAlreadyDefined(name)
        frame.variables[name] = value

    def assign(self, name: str, value: Value) -> None:
        """Update the nearest existing variable with this name."""
        for frame in self._chain():
            if name in frame.variables:
                frame.variables[name] = value
                return
        raise UndefinedVariable(name)

    def get(self, name: str) -> Value:
        """Look up the nearest variable with this name."""
        for frame in self._chain():
            if name in frame.variables:
                return frame.variables[name]
        raise UndefinedVariable(name)

    def contains(self, name: str) -> bool:
        return any(name in frame.variables for frame in self._chain())

    def enter_new_scope(self) -> None:
        self.frames.append(Frame(enclosing=self.current))
        self.current = len(self.frames) - 1

    def exit_current_scope(self) -> None:
        frame = self.frames[self.current]
        if frame.enclosing is None:
            raise GlobalScopeExit("cannot exit the global scope")
        self.frames.pop()
        self.current = frame.enclosing

    @contextmanager
    def scope(self):
        """
        Context manager for a nested scope.

        The frame is popped on exit even when the body raises.
        """
        self.enter_new_scope()
        try:
            yield self.frames[self.current]
        finally:
            self.exit_current_scope()
