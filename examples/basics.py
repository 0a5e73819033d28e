import logging
from dataclasses import dataclass

from fluxstore import Changed, Store, Unchanged, bind, middleware, reducer, sub_reducer
from fluxstore.devtools import RichPrinter

logging.basicConfig(level=logging.INFO, format="%(message)s")

# ------------------------------------------------------------------------------------------------
# Actions are plain values. Frozen dataclasses give them a useful repr for free.


@dataclass(frozen=True)
class Inc:
    pass


@dataclass(frozen=True)
class Dec:
    pass


@dataclass(frozen=True)
class Append:
    text: str


@dataclass(frozen=True)
class Nothing:
    pass


# ------------------------------------------------------------------------------------------------
# State classes name the transition functions governing each field. The functions
# are looked up when the store is built, so they can live further down the module.


@reducer
class SubThing:
    toggle: bool = bind("toggle", default=False)


@reducer
class Thing:
    counter: int = bind("counter", default=0)
    appender: str = bind("appender", default="")
    sub_state: SubThing = sub_reducer(SubThing)


def counter(state: int, action):
    if isinstance(action, Inc):
        return Changed(state + 1)
    if isinstance(action, Dec):
        return Changed(state - 1)
    return Unchanged(state)


def appender(state: str, action):
    if isinstance(action, Append):
        return Changed(state + action.text)
    return Unchanged(state)


def toggle(state: bool, action):
    if isinstance(action, Nothing):
        return Unchanged(state)
    return Changed(not state)


# A middleware sees every action before the reducers do, and the state after.
def announce(store, next, action):
    print(f">>> {type(action).__name__}")
    next(store, action)


# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Dispatching through announce -> logger -> reducers")
print("-" * 100)
print()

store = Store(
    Thing(),
    middleware(
        "announce, fluxstore.devtools.logger",
        state_bounds="Debug",
        action_bounds="Debug",
    ),
)
token = store.subscribe(RichPrinter(title="Thing"))

store.dispatch(Inc())
print(f"Counter is now: {store.get_state().counter}")
store.dispatch(Dec())
print(f"Counter is now: {store.get_state().counter}")
store.dispatch(Append("foo"))
print(f"Appender is now: {store.get_state().appender!r}")

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Nothing changes, so the subscriber stays quiet")
print("-" * 100)
print()

before = store.snapshot()
store.dispatch(Nothing())
assert store.snapshot() == before
print(f"Unchanged: {store.snapshot()}")

store.unsubscribe(token)
store.dispatch(Inc())  # logged by the middleware, but no panel
