"""
Capability bounds for state and action types.

A middleware declaration may require that the state type and the action type
support some capability, e.g. ``middleware("logger", action_bounds="Debug")``.
Capabilities are named predicates over a type; the result for each
(capability, type) pair is cached.
"""

import threading
import types
from collections.abc import Hashable
from typing import Callable, Dict, Iterable, Tuple

from .errors import CapabilityError, CompositionError

CapabilityPredicate = Callable[[type], bool]


def _defines(method: str) -> CapabilityPredicate:
    def predicate(tp: type) -> bool:
        return getattr(tp, method, None) is not getattr(object, method)

    return predicate


def _hashable(tp: type) -> bool:
    return issubclass(tp, Hashable)


# Instances of these raise in copy.deepcopy.
_UNCOPYABLE = (
    types.ModuleType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    types.FrameType,
    type(threading.Lock()),
    type(threading.RLock()),
)


def _deep_copyable(tp: type) -> bool:
    if issubclass(tp, _UNCOPYABLE):
        return False
    # Setting __deepcopy__ or __reduce_ex__ to None opts a class out of copying.
    if getattr(tp, "__deepcopy__", True) is None:
        return False
    return getattr(tp, "__reduce_ex__", None) is not None


_capabilities: Dict[str, CapabilityPredicate] = {
    "Debug": _defines("__repr__"),
    "Eq": _defines("__eq__"),
    "Hashable": _hashable,
    "Copy": _deep_copyable,
    "Ordered": _defines("__lt__"),
}

_cache: Dict[Tuple[str, type], bool] = {}


def register_capability(name: str, predicate: CapabilityPredicate) -> None:
    """Register (or replace) a named capability."""
    _capabilities[name] = predicate
    for key in [key for key in _cache if key[0] == name]:
        del _cache[key]


def known_capabilities() -> Tuple[str, ...]:
    return tuple(_capabilities)


def validate_bounds(bounds: Iterable[str]) -> Tuple[str, ...]:
    """Check that every bound names a registered capability."""
    bounds = tuple(bounds)
    for name in bounds:
        if name not in _capabilities:
            raise CompositionError(
                f"Unknown capability bound '{name}' "
                f"(known: {', '.join(sorted(_capabilities))})"
            )
    return bounds


def satisfies(tp: type, name: str) -> bool:
    key = (name, tp)
    result = _cache.get(key)
    if result is None:
        result = bool(_capabilities[name](tp))
        _cache[key] = result
    return result


def check_bounds(tp: type, bounds: Tuple[str, ...], role: str) -> None:
    """Raise CapabilityError if ``tp`` misses any of ``bounds``."""
    missing = [name for name in bounds if not satisfies(tp, name)]
    if missing:
        raise CapabilityError(
            f"{role} type {tp.__qualname__} does not satisfy "
            f"bound(s): {', '.join(missing)}"
        )

