"""
Exception types for fluxstore.

Composition errors are raised while a store is being built, before any
dispatch. Transition faults are raised during dispatch and leave the owning
store unusable.
"""


class FluxStoreError(Exception):
    """Base class for all fluxstore errors."""

    pass


# ============================================================================
# COMPOSITION ERRORS
# ============================================================================


class CompositionError(FluxStoreError):
    """Raised when declarative bindings cannot be composed into a store."""

    pass


class MalformedBindingError(CompositionError):
    """Raised when a name list or binding declaration is syntactically invalid."""

    pass


class UnresolvedNameError(CompositionError):
    """Raised when a declared name does not resolve to a callable."""

    def __init__(self, name: str, reason: str = "not found"):
        self.name = name
        super().__init__(f"Cannot resolve '{name}': {reason}")


class UnsupportedShapeError(CompositionError):
    """Raised when a state type cannot be governed by a reducer node."""

    pass


# ============================================================================
# DISPATCH ERRORS
# ============================================================================


class CapabilityError(FluxStoreError, TypeError):
    """Raised when a state or action type lacks a declared capability."""

    pass


class TransitionFault(FluxStoreError):
    """
    Raised when a transition function fails while computing a field value.

    The field keeps the value it had before the transition ran. The original
    exception is available as ``__cause__``.
    """

    def __init__(self, field: str, transition: str, message: str):
        self.field = field
        self.transition = transition
        super().__init__(
            f"Transition '{transition}' failed on field '{field}': {message}"
        )


class StoreFaultedError(FluxStoreError):
    """Raised when dispatching to a store that already had a transition fault."""

    pass
