"""Tests for capability bounds."""

import threading
from dataclasses import dataclass

import pytest

from fluxstore import CapabilityError, CompositionError, register_capability
from fluxstore.capabilities import (
    check_bounds,
    known_capabilities,
    satisfies,
    validate_bounds,
)


class Plain:
    pass


@dataclass
class Record:
    value: int = 0


@dataclass(frozen=True)
class FrozenRecord:
    value: int = 0


@pytest.mark.unit
def test_builtin_capabilities_are_registered():
    assert {"Debug", "Eq", "Hashable", "Copy", "Ordered"} <= set(known_capabilities())


@pytest.mark.unit
def test_debug_requires_own_repr():
    """Dataclasses and builtins define __repr__, plain classes don't."""
    assert satisfies(Record, "Debug")
    assert satisfies(int, "Debug")
    assert not satisfies(Plain, "Debug")


@pytest.mark.unit
def test_eq_requires_own_eq():
    assert satisfies(Record, "Eq")
    assert not satisfies(Plain, "Eq")


@pytest.mark.unit
def test_hashable_follows_hash_protocol():
    """Mutable dataclasses set __hash__ to None; frozen ones don't."""
    assert satisfies(FrozenRecord, "Hashable")
    assert not satisfies(Record, "Hashable")
    assert not satisfies(list, "Hashable")


@pytest.mark.unit
def test_ordered_requires_own_lt():
    assert satisfies(int, "Ordered")
    assert not satisfies(Record, "Ordered")


@pytest.mark.unit
def test_copy_accepts_ordinary_types():
    assert satisfies(Record, "Copy")
    assert satisfies(Plain, "Copy")
    assert satisfies(list, "Copy")
    assert satisfies(int, "Copy")


@pytest.mark.unit
def test_copy_rejects_types_deepcopy_cannot_handle():
    class NoDeepCopy:
        __deepcopy__ = None

    class NoReduce:
        __reduce_ex__ = None

    def gen():
        yield 1

    assert not satisfies(NoDeepCopy, "Copy")
    assert not satisfies(NoReduce, "Copy")
    assert not satisfies(type(gen()), "Copy")
    assert not satisfies(type(threading.Lock()), "Copy")


@pytest.mark.unit
def test_validate_bounds_rejects_unknown_names():
    with pytest.raises(CompositionError, match="Unknown capability bound 'Printable'"):
        validate_bounds(["Debug", "Printable"])


@pytest.mark.unit
def test_check_bounds_lists_missing_capabilities():
    with pytest.raises(CapabilityError, match="Debug, Eq"):
        check_bounds(Plain, ("Debug", "Eq"), "Action")


@pytest.mark.unit
def test_capability_error_is_a_type_error():
    with pytest.raises(TypeError):
        check_bounds(Plain, ("Debug",), "State")


@pytest.mark.unit
def test_register_capability_adds_a_bound():
    register_capability("Named", lambda tp: hasattr(tp, "name"))

    assert validate_bounds(["Named"]) == ("Named",)
    assert not satisfies(Plain, "Named")


@pytest.mark.unit
def test_register_capability_invalidates_cached_results():
    """Replacing a capability drops results cached for the old predicate."""
    register_capability("Flag", lambda tp: False)
    assert not satisfies(Plain, "Flag")

    register_capability("Flag", lambda tp: True)
    assert satisfies(Plain, "Flag")
