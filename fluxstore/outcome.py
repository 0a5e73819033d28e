"""
Transition outcomes.

A transition function maps ``(value, action)`` to an ``Outcome``: either
``Unchanged(value)`` or ``Changed(new_value)``. Both arms carry a value so the
reducer can always write the field back.

Example:
    def counter(value: int, action) -> Outcome[int]:
        if isinstance(action, Inc):
            return Changed(value + 1)
        return Unchanged(value)
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

T = TypeVar("T")


class Outcome(Generic[T]):
    """Base for the two outcome arms. Not instantiated directly."""

    __slots__ = ()

    changed: ClassVar[bool]
    value: T


@dataclass(frozen=True)
class Unchanged(Outcome[T]):
    """The transition did not recognize the action or left the value as is."""

    value: T
    changed: ClassVar[bool] = False

    def __repr__(self) -> str:
        return f"Unchanged({self.value!r})"


@dataclass(frozen=True)
class Changed(Outcome[T]):
    """The transition produced a new value."""

    value: T
    changed: ClassVar[bool] = True

    def __repr__(self) -> str:
        return f"Changed({self.value!r})"


def changed(value: T) -> Changed[T]:
    return Changed(value)


def unchanged(value: T) -> Unchanged[T]:
    return Unchanged(value)


def is_outcome(obj: Any) -> bool:
    """True if ``obj`` is one of the two outcome arms."""
    return isinstance(obj, (Changed, Unchanged))
