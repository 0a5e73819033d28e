"""
Middleware chain composition.

A middleware wraps the rest of the dispatch chain:

```python
def audit(store, next, action):
    print("before", action)
    next(store, action)
    print("after", store.get_state())
```

``middleware("audit, logger")`` declares an ordered chain. When the store is
built the chain is composed from the last name to the first, so the entry
point runs ``audit`` first and the reduce step last. Links are created once;
dispatch never rebuilds them.

A middleware may skip ``next`` (the action is dropped) or call it more than
once (each call reduces and notifies subscribers on its own).
"""

import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from .capabilities import check_bounds, validate_bounds
from .errors import MalformedBindingError
from .names import NameEntry, NameList, NameResolver, entry_name, normalize_entries, split_names

logger = logging.getLogger(__name__)

Link = Callable[[Any, Any], Any]
Middleware = Callable[[Any, Link, Any], Any]


def _caller_module(depth: int = 2) -> Optional[str]:
    try:
        return sys._getframe(depth).f_globals.get("__name__")
    except (AttributeError, ValueError):
        return None


def _parse_bounds(bounds: Union[str, Sequence[str], None], what: str) -> Tuple[str, ...]:
    if bounds is None:
        return ()
    if isinstance(bounds, str):
        return tuple(split_names(bounds, what=what))
    result = []
    for item in bounds:
        if not isinstance(item, str):
            raise MalformedBindingError(f"{what} entries must be names, got {item!r}")
        result.extend(split_names(item, what=what))
    return tuple(result)


class MiddlewareChain:
    """
    A composed dispatch chain.

    Attributes:
        names: Middleware names in declared (execution) order.
        links: Generated links, ``links[0]`` being the entry point.
        entry: The function the store calls with ``(store, action)``.
    """

    __slots__ = ("names", "links", "entry")

    def __init__(self, names: Tuple[str, ...], links: Tuple[Link, ...], entry: Link):
        self.names = names
        self.links = links
        self.entry = entry

    def __call__(self, store: Any, action: Any) -> Any:
        return self.entry(store, action)

    def __len__(self) -> int:
        return len(self.links)

    def __repr__(self) -> str:
        chain = " -> ".join(self.names + ("reduce",))
        return f"MiddlewareChain({chain})"


def _make_link(mw: Middleware, next_link: Link, action_bounds: Tuple[str, ...]) -> Link:
    if action_bounds:

        def link(store, action):
            check_bounds(type(action), action_bounds, "Action")
            return mw(store, next_link, action)

    else:

        def link(store, action):
            return mw(store, next_link, action)

    link.__name__ = link.__qualname__ = f"{entry_name(mw)}_dispatch"
    link.__wrapped__ = mw
    return link


def compose_chain(
    middlewares: Sequence[Middleware],
    base: Link,
    action_bounds: Sequence[str] = (),
) -> MiddlewareChain:
    """
    Compose ``middlewares`` around ``base``.

    Links are built innermost first: the last middleware wraps ``base``, the
    one before it wraps that link, and so on. The returned entry point is the
    link of the first middleware. With no middleware the entry point is
    ``base`` itself.
    """
    action_bounds = tuple(action_bounds)
    links = []
    next_link = base
    for mw in reversed(middlewares):
        if not callable(mw):
            raise MalformedBindingError(f"Middleware is not callable: {mw!r}")
        next_link = _make_link(mw, next_link, action_bounds)
        links.append(next_link)
    links.reverse()

    names = tuple(entry_name(mw) for mw in middlewares)
    return MiddlewareChain(names, tuple(links), next_link)


@dataclass(frozen=True)
class MiddlewareSpec:
    """
    Declarative middleware binding for a store.

    Attributes:
        entries: Middleware names or callables, outermost first.
        state_bounds: Capabilities the root state type must have.
        action_bounds: Capabilities every dispatched action must have.
        module: Module whose globals are searched for the names.
    """

    entries: Tuple[NameEntry, ...] = ()
    state_bounds: Tuple[str, ...] = ()
    action_bounds: Tuple[str, ...] = ()
    module: Optional[str] = None

    def resolve(
        self,
        namespace: Optional[Mapping[str, Any]] = None,
        fallback_modules: Sequence[Optional[str]] = (),
    ) -> Tuple[Middleware, ...]:
        resolver = NameResolver(namespace, modules=(self.module,) + tuple(fallback_modules))
        return tuple(resolver.resolve_all(self.entries))

    def compose(
        self,
        base: Link,
        namespace: Optional[Mapping[str, Any]] = None,
        fallback_modules: Sequence[Optional[str]] = (),
    ) -> MiddlewareChain:
        """Resolve names, validate bounds and build the chain around ``base``."""
        validate_bounds(self.state_bounds)
        validate_bounds(self.action_bounds)
        chain = compose_chain(
            self.resolve(namespace, fallback_modules), base, self.action_bounds
        )
        logger.debug("Composed %r", chain)
        return chain


def middleware(
    names: Optional[NameList] = None,
    *,
    state_bounds: Union[str, Sequence[str], None] = None,
    action_bounds: Union[str, Sequence[str], None] = None,
    module: Optional[str] = None,
) -> MiddlewareSpec:
    """
    Declare an ordered middleware chain.

    ``names`` is a comma separated list (``"audit, logger"``), a callable, or a
    sequence of both; omit it for a chain that only reduces. Names are looked
    up in the calling module unless ``module`` says otherwise.
    """
    entries = () if names is None else tuple(normalize_entries(names, what="middleware list"))
    return MiddlewareSpec(
        entries=entries,
        state_bounds=_parse_bounds(state_bounds, "state bounds"),
        action_bounds=_parse_bounds(action_bounds, "action bounds"),
        module=module if module is not None else _caller_module(),
    )
