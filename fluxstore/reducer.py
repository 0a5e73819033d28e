"""
fluxstore Reducer Nodes
=======================

A reducer node governs one state shape. Each field of the shape is bound
either to an ordered list of transition functions or to a nested reducer
node, and ``ReducerNode.dispatch(state, action)`` applies every binding once,
returning True if any of them reported a change.

Declaring bindings
------------------

```python
from fluxstore import Changed, Unchanged, bind, reducer, sub_reducer

@reducer
class Settings:
    dark_mode: bool = bind("toggle_dark_mode", default=False)

@reducer
class AppState:
    counter: int = bind("count", default=0)
    log: list = bind("record, trim", default_factory=list)
    settings: Settings = sub_reducer(Settings)
```

Names are checked when the class is decorated and resolved when a Store is
built (or on the first ``AppState().dispatch(action)``), so transition
functions may be defined after the state class.

The same tree can be registered in code with ``ReducerBuilder``:

```python
node = (
    ReducerBuilder(AppState)
    .field("counter", count)
    .field("log", record, trim)
    .sub("settings", Settings)
    .build()
)
```

Field updates
-------------

A field is read, shallow copied, run through its transitions in declared
order, and written back only after all of them succeeded. If a transition
raises, or returns something other than ``Changed``/``Unchanged``, the field
keeps its previous value and a ``TransitionFault`` propagates to the store.

Transitions get the copy, so appending to a list field in place and then
raising leaves the stored list alone. The copy is shallow: objects nested
inside the field value are shared with the stored one.
"""

import copy
import dataclasses
import enum
import logging
import typing
from dataclasses import MISSING
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)

from .errors import (
    CompositionError,
    MalformedBindingError,
    TransitionFault,
    UnsupportedShapeError,
)
from .names import NameEntry, NameList, NameResolver, entry_name, normalize_entries
from .outcome import Outcome, is_outcome

logger = logging.getLogger(__name__)

Transition = Callable[[Any, Any], Outcome]

# Key under which bind()/sub_reducer() store their declaration in field metadata
BINDING_KEY = "fluxstore.binding"


# ============================================================================
# DECLARATIONS
# ============================================================================


@dataclasses.dataclass(frozen=True)
class TransitionDecl:
    """Field metadata: ordered transition names or callables."""

    entries: Tuple[NameEntry, ...]


@dataclasses.dataclass(frozen=True)
class SubReducerDecl:
    """Field metadata: the field is a nested reducer-governed state."""

    state_type: Optional[type] = None


FieldDecl = Union[TransitionDecl, SubReducerDecl]


def bind(
    transitions: NameList,
    *,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    **field_kwargs: Any,
) -> Any:
    """
    Declare a field governed by transition functions.

    ``transitions`` is a comma separated name list, a callable, or a sequence
    of both. Returns a ``dataclasses.field`` carrying the binding.
    """
    entries = normalize_entries(transitions, what="reducer binding")
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[BINDING_KEY] = TransitionDecl(tuple(entries))
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **field_kwargs,
    )


def sub_reducer(
    state_type: Optional[type] = None,
    *,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    **field_kwargs: Any,
) -> Any:
    """
    Declare a field holding a nested reducer state.

    When ``state_type`` is omitted it is taken from the field annotation at
    composition time. When neither default is given, ``state_type`` itself is
    used as the default factory.
    """
    if state_type is not None and not isinstance(state_type, type):
        raise MalformedBindingError(
            f"sub_reducer() expects a class, got {state_type!r}"
        )
    if default is MISSING and default_factory is MISSING and state_type is not None:
        default_factory = state_type

    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[BINDING_KEY] = SubReducerDecl(state_type)
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=metadata,
        **field_kwargs,
    )


@dataclasses.dataclass(frozen=True)
class ReducerPlan:
    """Unresolved bindings recorded on a class by ``@reducer``."""

    state_type: type
    fields: Tuple[Tuple[str, FieldDecl], ...]
    namespace: Mapping[str, Any]


# ============================================================================
# NODES
# ============================================================================


@dataclasses.dataclass(frozen=True)
class FieldBinding:
    """One field of a reducer node: transitions, or a nested node."""

    name: str
    transitions: Tuple[Transition, ...] = ()
    sub: Optional["ReducerNode"] = None

    def __post_init__(self):
        if bool(self.transitions) == (self.sub is not None):
            raise CompositionError(
                f"Field '{self.name}' must have either transitions or a sub-reducer"
            )

    @property
    def is_sub_reducer(self) -> bool:
        return self.sub is not None


def _apply(fn: Transition, field: str, value: Any, action: Any) -> Outcome:
    try:
        outcome = fn(value, action)
    except Exception as exc:
        raise TransitionFault(
            field, entry_name(fn), f"{type(exc).__name__}: {exc}"
        ) from exc

    if not is_outcome(outcome):
        raise TransitionFault(
            field,
            entry_name(fn),
            f"returned {type(outcome).__name__}, expected Changed or Unchanged",
        )
    return outcome


def _working_copy(field: str, value: Any) -> Any:
    try:
        return copy.copy(value)
    except Exception as exc:
        raise TransitionFault(
            field, "copy", f"value of type {type(value).__name__} can't be copied: {exc}"
        ) from exc


def _transition_step(name: str, transitions: Tuple[Transition, ...]) -> Callable:
    """
    Create the update function for a transition-bound field.

    The field is written back once, after every transition returned.
    """
    if len(transitions) == 1:
        (fn,) = transitions

        def step(state, action) -> bool:
            outcome = _apply(fn, name, _working_copy(name, getattr(state, name)), action)
            setattr(state, name, outcome.value)
            return outcome.changed

    else:

        def step(state, action) -> bool:
            value = _working_copy(name, getattr(state, name))
            changed = False
            for fn in transitions:
                outcome = _apply(fn, name, value, action)
                value = outcome.value
                changed = changed or outcome.changed
            setattr(state, name, value)
            return changed

    step.__name__ = f"reduce_{name}"
    return step


def _sub_reducer_step(name: str, node: "ReducerNode") -> Callable:
    state_type = node.state_type

    def step(state, action) -> bool:
        sub_state = getattr(state, name)
        if not isinstance(sub_state, state_type):
            problem = TypeError(
                f"holds {type(sub_state).__name__}, expected {state_type.__qualname__}"
            )
            raise TransitionFault(
                name, f"sub_reducer[{state_type.__qualname__}]", str(problem)
            ) from problem
        return node.dispatch(sub_state, action)

    step.__name__ = f"reduce_{name}"
    return step


class ReducerNode:
    """
    Composed dispatch for one state shape.

    Built once; ``dispatch`` runs the prebuilt per-field steps in declaration
    order and ORs their change flags.
    """

    __slots__ = ("state_type", "bindings", "_steps")

    def __init__(self, state_type: type, bindings: Sequence[FieldBinding]):
        self.state_type = state_type
        self.bindings: Tuple[FieldBinding, ...] = tuple(bindings)
        self._steps = tuple(
            _sub_reducer_step(b.name, b.sub)
            if b.is_sub_reducer
            else _transition_step(b.name, b.transitions)
            for b in self.bindings
        )

    def dispatch(self, state: Any, action: Any) -> bool:
        """Apply every binding to ``state`` in place; True if anything changed."""
        changed = False
        for step in self._steps:
            # every step runs, even after a change was seen
            if step(state, action):
                changed = True
        return changed

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(b.name for b in self.bindings)

    def walk(self, prefix: str = ""):
        """Yield ``(path, binding)`` for every binding in the tree, depth first."""
        for binding in self.bindings:
            path = f"{prefix}{binding.name}"
            yield path, binding
            if binding.is_sub_reducer:
                yield from binding.sub.walk(path + ".")

    def __repr__(self) -> str:
        parts = []
        for binding in self.bindings:
            if binding.is_sub_reducer:
                parts.append(f"{binding.name}={binding.sub!r}")
            else:
                names = ", ".join(entry_name(fn) for fn in binding.transitions)
                parts.append(f"{binding.name}=[{names}]")
        return f"ReducerNode[{self.state_type.__qualname__}]({'; '.join(parts)})"


# ============================================================================
# SHAPE CHECKS
# ============================================================================


def _check_shape(state_type: Any) -> None:
    if not isinstance(state_type, type):
        raise UnsupportedShapeError(f"State shape must be a class, got {state_type!r}")
    if issubclass(state_type, enum.Enum):
        raise UnsupportedShapeError(
            f"{state_type.__qualname__} is an enum; only record shapes can be reducers"
        )
    if issubclass(state_type, tuple):
        raise UnsupportedShapeError(
            f"{state_type.__qualname__} is a tuple type; fields must be assignable"
        )
    params = getattr(state_type, "__dataclass_params__", None)
    if params is not None and params.frozen:
        raise UnsupportedShapeError(
            f"{state_type.__qualname__} is a frozen dataclass; fields must be assignable"
        )


def _known_fields(state_type: type) -> Optional[Set[str]]:
    """Field names of a record type, or None when they can't be determined."""
    if dataclasses.is_dataclass(state_type):
        return {f.name for f in dataclasses.fields(state_type)}

    names: Set[str] = set()
    for klass in state_type.__mro__:
        names.update(getattr(klass, "__annotations__", {}))
        slots = klass.__dict__.get("__slots__", ())
        names.update([slots] if isinstance(slots, str) else slots)
    return names or None


# ============================================================================
# BUILDER
# ============================================================================


class ReducerBuilder:
    """
    Registers field bindings for a state type and builds a ReducerNode.

    Every registration is validated immediately; ``build()`` can't fail.
    """

    def __init__(self, state_type: type):
        _check_shape(state_type)
        self.state_type = state_type
        self._known = _known_fields(state_type)
        self._bindings: List[FieldBinding] = []
        self._bound: Set[str] = set()

    def _claim(self, name: str) -> None:
        if not isinstance(name, str) or not name.isidentifier():
            raise MalformedBindingError(f"Invalid field name {name!r}")
        if self._known is not None and name not in self._known:
            raise CompositionError(
                f"{self.state_type.__qualname__} has no field '{name}'"
            )
        if name in self._bound:
            raise CompositionError(
                f"Field '{name}' of {self.state_type.__qualname__} is bound twice"
            )
        self._bound.add(name)

    def field(self, name: str, *transitions: Transition) -> "ReducerBuilder":
        """Bind ``name`` to transitions, applied in the order given."""
        if not transitions:
            raise MalformedBindingError(f"Field '{name}' needs at least one transition")
        for fn in transitions:
            if not callable(fn):
                raise CompositionError(
                    f"Transition for field '{name}' is not callable: {fn!r}"
                )
        self._claim(name)
        self._bindings.append(FieldBinding(name, tuple(transitions)))
        return self

    def sub(
        self,
        name: str,
        node: Union["ReducerNode", type],
        namespace: Optional[Mapping[str, Any]] = None,
    ) -> "ReducerBuilder":
        """Bind ``name`` to a nested node, or to a ``@reducer`` class to compile."""
        if isinstance(node, type):
            node = compile_reducer(node, namespace, _seen=(self.state_type,))
        if not isinstance(node, ReducerNode):
            raise CompositionError(
                f"Sub-reducer for field '{name}' must be a ReducerNode or a "
                f"@reducer class, got {node!r}"
            )
        self._claim(name)
        self._bindings.append(FieldBinding(name, sub=node))
        return self

    def build(self) -> ReducerNode:
        return ReducerNode(self.state_type, self._bindings)


# ============================================================================
# DECORATOR AND COMPOSITION
# ============================================================================


def _resolve_sub_type(state_type: type, name: str, decl: SubReducerDecl) -> type:
    if decl.state_type is not None:
        return decl.state_type
    try:
        hints = typing.get_type_hints(state_type)
    except Exception as exc:
        raise CompositionError(
            f"Cannot evaluate annotations of {state_type.__qualname__}: {exc}"
        ) from exc
    sub_type = hints.get(name)
    if not isinstance(sub_type, type):
        raise CompositionError(
            f"Sub-reducer field '{name}' of {state_type.__qualname__} needs a class "
            f"annotation or sub_reducer(StateClass), got {sub_type!r}"
        )
    return sub_type


def compile_reducer(
    state_type: type,
    namespace: Optional[Mapping[str, Any]] = None,
    *,
    _seen: Tuple[type, ...] = (),
) -> ReducerNode:
    """
    Resolve the bindings recorded by ``@reducer`` into a ReducerNode tree.

    Names are looked up in ``namespace``, then the namespace given to the
    decorator, then the module defining each state class.
    """
    plan: Optional[ReducerPlan] = getattr(state_type, "__reducer_plan__", None)
    if plan is None:
        raise UnsupportedShapeError(
            f"{getattr(state_type, '__qualname__', state_type)!r} is not a reducer; "
            "decorate it with @reducer or build a node with ReducerBuilder"
        )
    if state_type in _seen:
        chain = " -> ".join(t.__qualname__ for t in _seen + (state_type,))
        raise CompositionError(f"Recursive state shape: {chain}")

    merged: Dict[str, Any] = dict(plan.namespace)
    merged.update(namespace or {})
    resolver = NameResolver(merged, modules=(state_type.__module__,))

    builder = ReducerBuilder(state_type)
    for name, decl in plan.fields:
        if isinstance(decl, TransitionDecl):
            builder.field(name, *resolver.resolve_all(decl.entries))
        else:
            sub_type = _resolve_sub_type(state_type, name, decl)
            builder.sub(
                name,
                compile_reducer(sub_type, namespace, _seen=_seen + (state_type,)),
            )

    node = builder.build()
    logger.debug("Composed %r", node)
    return node


def _dispatch_method(self, action: Any) -> bool:
    """Apply ``action`` to this state in place; True if any field changed."""
    cls = type(self)
    node = cls.__dict__.get("__reducer_node__")
    if node is None:
        node = compile_reducer(cls)
        cls.__reducer_node__ = node
    return node.dispatch(self, action)


def _process_class(cls: type, namespace: Optional[Mapping[str, Any]]) -> type:
    _check_shape(cls)
    if "__dataclass_fields__" not in cls.__dict__:
        cls = dataclasses.dataclass(cls)
        _check_shape(cls)

    fields: List[Tuple[str, FieldDecl]] = []
    for f in dataclasses.fields(cls):
        decl = f.metadata.get(BINDING_KEY)
        if decl is not None:
            fields.append((f.name, decl))
    if not fields:
        logger.debug("%s declares no bindings; dispatch never changes it", cls.__qualname__)

    cls.__reducer_plan__ = ReducerPlan(cls, tuple(fields), dict(namespace or {}))
    cls.__reducer_node__ = None
    if "dispatch" not in cls.__dict__:
        cls.dispatch = _dispatch_method
    return cls


def reducer(
    cls: Optional[type] = None, *, namespace: Optional[Mapping[str, Any]] = None
) -> Any:
    """
    Class decorator recording field bindings on a state class.

    Usable bare (``@reducer``) or with an explicit lookup namespace
    (``@reducer(namespace={"count": count})``). Classes that are not already
    dataclasses are turned into (mutable) dataclasses.
    """

    def wrap(cls: type) -> type:
        return _process_class(cls, namespace)

    if cls is None:
        return wrap
    return wrap(cls)


def is_reducer(obj: Any) -> bool:
    """True for ``@reducer`` classes and their instances."""
    return getattr(obj, "__reducer_plan__", None) is not None
