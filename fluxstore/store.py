"""
fluxstore Store - Owner of Root State
=====================================

A Store owns one root state value, the composed dispatch chain, and the
list of subscribers.

Dispatch Flow
-------------

```
store.dispatch(action)
    -> first declared middleware
    -> ... -> last declared middleware
    -> reduce: root ReducerNode.dispatch(state, action)
    -> if anything changed: every subscriber's update(store), in order
```

Everything runs synchronously; ``dispatch`` returns when the chain, the
reducer tree and all notifications are done. A subscriber may dispatch again
from ``update``; there is no recursion guard.

Basic Usage
-----------

```python
from fluxstore import Changed, Store, Unchanged, bind, middleware, reducer

@reducer
class Counter:
    count: int = bind("counter", default=0)

def counter(value, action):
    if action == "inc":
        return Changed(value + 1)
    return Unchanged(value)

store = Store(Counter(), middleware("logger", action_bounds="Debug"))
store.subscribe(lambda s: print("count is", s.get_state().count))
store.dispatch("inc")  # prints: count is 1
store.dispatch("dec")  # unchanged, nothing printed
```

Faults
------

A transition that raises leaves its field untouched and poisons the store:
the ``TransitionFault`` propagates out of ``dispatch`` and every later
dispatch raises ``StoreFaultedError``. With ``StoreConfig(abort_on_fault=True)``
the process is aborted instead.
"""

import copy
import dataclasses
import itertools
import logging
import os
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
    Union,
    runtime_checkable,
)

from .capabilities import check_bounds
from .config import StoreConfig
from .errors import (
    CapabilityError,
    CompositionError,
    StoreFaultedError,
    TransitionFault,
)
from .middleware import MiddlewareChain, MiddlewareSpec, _caller_module, middleware
from .names import NameList
from .reducer import ReducerNode, compile_reducer

logger = logging.getLogger(__name__)

S = TypeVar("S")


@runtime_checkable
class Subscriber(Protocol):
    """Observer notified after every dispatch that changed state."""

    def update(self, store: "Store") -> None:
        ...


@dataclasses.dataclass(frozen=True)
class SubscriptionToken:
    """Opaque handle returned by ``Store.subscribe``."""

    id: int


class StateSnapshot:
    """
    Immutable snapshot of a state value at a specific point in time.

    Field values are deep copied by default, so later dispatches don't show
    through.
    """

    __slots__ = ("_state_type", "_field_names", "_values")

    def __init__(self, state: Any, field_names: Iterable[str], copy_values: bool = True):
        values = {}
        for name in field_names:
            value = getattr(state, name)
            values[name] = copy.deepcopy(value) if copy_values else value
        object.__setattr__(self, "_state_type", type(state))
        object.__setattr__(self, "_field_names", tuple(values))
        object.__setattr__(self, "_values", values)

    def __getattr__(self, name: str) -> Any:
        """Access snapshot values."""
        values = object.__getattribute__(self, "_values")
        if name in values:
            return values[name]
        raise AttributeError(f"StateSnapshot has no field '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("StateSnapshot is read-only")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StateSnapshot):
            return NotImplemented
        return self._state_type is other._state_type and self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __copy__(self) -> "StateSnapshot":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "StateSnapshot":
        return self

    def __reduce__(self):
        return (_restore_snapshot, (self._state_type, self._values))

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        if not self._values:
            return "StateSnapshot()"
        fields = [f"{name}={self._values[name]!r}" for name in self._field_names]
        return f"StateSnapshot({', '.join(fields)})"


def _restore_snapshot(state_type: type, values: Dict[str, Any]) -> StateSnapshot:
    snapshot = StateSnapshot.__new__(StateSnapshot)
    object.__setattr__(snapshot, "_state_type", state_type)
    object.__setattr__(snapshot, "_field_names", tuple(values))
    object.__setattr__(snapshot, "_values", dict(values))
    return snapshot


def _state_fields(state: Any, root: ReducerNode) -> Sequence[str]:
    if dataclasses.is_dataclass(state):
        return [f.name for f in dataclasses.fields(state)]
    return root.field_names


def _reduce_link(store: "Store", action: Any) -> None:
    """Innermost link of every chain."""
    store._reduce(action)


class Store(Generic[S]):
    """
    Owner of a root state value.

    Args:
        initial_state: The root state. A ``@reducer`` instance, or any record
            when ``reducer`` is given.
        middleware: A ``MiddlewareSpec`` from ``middleware(...)``, or a name
            list accepted by it. ``None`` reduces directly.
        reducer: An explicit root ReducerNode (e.g. from ReducerBuilder).
        namespace: Extra names for resolving transitions and middleware.
        config: Store settings; defaults to ``StoreConfig()``.

    Raises:
        CompositionError: if any binding can't be resolved or validated.
    """

    def __init__(
        self,
        initial_state: S,
        middleware: Union[MiddlewareSpec, NameList, None] = None,
        *,
        reducer: Optional[ReducerNode] = None,
        namespace: Optional[Mapping[str, Any]] = None,
        config: Optional[StoreConfig] = None,
    ):
        self.config = config or StoreConfig()
        state_type = type(initial_state)

        root = reducer if reducer is not None else compile_reducer(state_type, namespace)
        if not isinstance(initial_state, root.state_type):
            raise CompositionError(
                f"Initial state is {state_type.__qualname__}, reducer governs "
                f"{root.state_type.__qualname__}"
            )

        spec = _as_spec(middleware, _caller_module())
        try:
            check_bounds(state_type, spec.state_bounds, "State")
        except CapabilityError as exc:
            raise CompositionError(str(exc)) from exc

        self._state = initial_state
        self._root = root
        self._chain: MiddlewareChain = spec.compose(
            _reduce_link, namespace, fallback_modules=(state_type.__module__,)
        )
        self._entry = self._chain.entry
        self._subscribers: Dict[SubscriptionToken, Callable[["Store"], None]] = {}
        self._tokens = itertools.count(1)
        self._fault: Optional[TransitionFault] = None

        logger.debug(
            "[%s] Store ready: %r, %r", self.config.name, self._root, self._chain
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: Any) -> None:
        """Run ``action`` through the middleware chain and the reducer tree."""
        self._check_usable()
        self._entry(self, action)

    def _reduce(self, action: Any) -> bool:
        """Apply ``action`` to the root state and notify subscribers on change."""
        self._check_usable()
        try:
            changed = self._root.dispatch(self._state, action)
        except TransitionFault as fault:
            self._fault = fault
            logger.critical(
                "[%s] %s; store state can no longer be trusted", self.config.name, fault
            )
            if self.config.abort_on_fault:
                logging.shutdown()
                os.abort()
            raise

        logger.debug("[%s] Reduced %r (changed=%s)", self.config.name, action, changed)
        if changed:
            self._notify()
        return changed

    def _notify(self) -> None:
        # Subscribers added during this pass wait for the next one; removed
        # ones are skipped immediately.
        for token, callback in list(self._subscribers.items()):
            if token in self._subscribers:
                callback(self)

    def _check_usable(self) -> None:
        if self._fault is not None:
            raise StoreFaultedError(
                f"Store '{self.config.name}' faulted earlier: {self._fault}"
            ) from self._fault

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def get_state(self) -> S:
        """The live root state. Treat it as read-only; mutate through dispatch."""
        return self._state

    @property
    def state(self) -> S:
        return self._state

    def snapshot(self) -> StateSnapshot:
        """Immutable copy of the root state's fields."""
        return StateSnapshot(
            self._state,
            _state_fields(self._state, self._root),
            copy_values=self.config.copy_snapshots,
        )

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(
        self, subscriber: Union[Subscriber, Callable[["Store"], None]]
    ) -> SubscriptionToken:
        """
        Append a subscriber and return a token for ``unsubscribe``.

        ``subscriber`` is an object with ``update(store)`` or a callable taking
        the store. The same subscriber may be added more than once.
        """
        if isinstance(subscriber, Subscriber) and not isinstance(subscriber, type):
            callback = subscriber.update
        elif callable(subscriber):
            callback = subscriber
        else:
            raise TypeError(
                f"Subscriber must define update(store) or be callable, got {subscriber!r}"
            )

        token = SubscriptionToken(next(self._tokens))
        self._subscribers[token] = callback
        return token

    def unsubscribe(self, token: SubscriptionToken) -> bool:
        """Remove a subscriber, keeping the order of the rest. False if unknown."""
        return self._subscribers.pop(token, None) is not None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def reducer(self) -> ReducerNode:
        return self._root

    @property
    def chain(self) -> MiddlewareChain:
        return self._chain

    @property
    def faulted(self) -> bool:
        return self._fault is not None

    def __repr__(self) -> str:
        return (
            f"Store(name={self.config.name!r}, state={self._state!r}, "
            f"subscribers={len(self._subscribers)})"
        )


def _as_spec(
    selector: Union[MiddlewareSpec, NameList, None], module: Optional[str]
) -> MiddlewareSpec:
    if selector is None:
        return MiddlewareSpec(module=module)
    if isinstance(selector, MiddlewareSpec):
        return selector
    return middleware(selector, module=module)
