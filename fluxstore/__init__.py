"""
fluxstore - Declarative Reducer Stores

A single-owner state container: state changes only through pure transition
functions bound to its fields, every dispatch passes through an ordered
middleware chain, and subscribers hear about dispatches that changed state.
"""

__version__ = "0.1.0"

from .capabilities import register_capability
from .config import StoreConfig
from .errors import (
    CapabilityError,
    CompositionError,
    FluxStoreError,
    MalformedBindingError,
    StoreFaultedError,
    TransitionFault,
    UnresolvedNameError,
    UnsupportedShapeError,
)
from .middleware import MiddlewareChain, MiddlewareSpec, compose_chain, middleware
from .names import NameResolver, split_names
from .outcome import Changed, Outcome, Unchanged, changed, unchanged
from .reducer import (
    FieldBinding,
    ReducerBuilder,
    ReducerNode,
    bind,
    compile_reducer,
    is_reducer,
    reducer,
    sub_reducer,
)
from .store import StateSnapshot, Store, Subscriber, SubscriptionToken

__all__ = [
    # Outcomes
    "Outcome",
    "Changed",
    "Unchanged",
    "changed",
    "unchanged",
    # Reducers
    "reducer",
    "bind",
    "sub_reducer",
    "compile_reducer",
    "is_reducer",
    "ReducerBuilder",
    "ReducerNode",
    "FieldBinding",
    # Middleware
    "middleware",
    "compose_chain",
    "MiddlewareSpec",
    "MiddlewareChain",
    # Store
    "Store",
    "StoreConfig",
    "StateSnapshot",
    "Subscriber",
    "SubscriptionToken",
    # Binding helpers
    "NameResolver",
    "split_names",
    "register_capability",
    # Exceptions
    "FluxStoreError",
    "CompositionError",
    "MalformedBindingError",
    "UnresolvedNameError",
    "UnsupportedShapeError",
    "CapabilityError",
    "TransitionFault",
    "StoreFaultedError",
]
