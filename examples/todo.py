"""
Todo list store.

Two transitions share the ``todos`` field and run in declared order; the
visibility filter ignores requests that wouldn't change it.

To run this example:
    $ pip install -e . && python examples/todo.py
"""

import enum
from dataclasses import dataclass, replace
from typing import List, Tuple

from rich.table import Table

from fluxstore import Changed, Store, Unchanged, bind, reducer
from fluxstore.devtools import RichPrinter


class Visibility(enum.Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Todo:
    id: int
    text: str
    completed: bool = False


@dataclass(frozen=True)
class Add:
    todo: Todo


@dataclass(frozen=True)
class Toggle:
    id: int


@dataclass(frozen=True)
class SetVisibility:
    visibility: Visibility


@reducer
class Todos:
    todos: Tuple[Todo, ...] = bind("add_todo, toggle_todo", default=())
    visibility: Visibility = bind("set_visibility", default=Visibility.ALL)


def add_todo(todos, action):
    if isinstance(action, Add):
        return Changed(todos + (action.todo,))
    return Unchanged(todos)


def toggle_todo(todos, action):
    if not isinstance(action, Toggle):
        return Unchanged(todos)
    if not any(t.id == action.id for t in todos):
        return Unchanged(todos)
    return Changed(
        tuple(replace(t, completed=not t.completed) if t.id == action.id else t for t in todos)
    )


def set_visibility(visibility, action):
    if isinstance(action, SetVisibility) and action.visibility != visibility:
        return Changed(action.visibility)
    return Unchanged(visibility)


def visible_todos(state: Todos) -> List[Todo]:
    if state.visibility is Visibility.ACTIVE:
        return [t for t in state.todos if not t.completed]
    if state.visibility is Visibility.COMPLETED:
        return [t for t in state.todos if t.completed]
    return list(state.todos)


def todo_table(store) -> Table:
    state = store.get_state()
    table = Table(title=f"TODOs ({state.visibility.value})")
    table.add_column("id", justify="right")
    table.add_column("text")
    table.add_column("done")
    for todo in visible_todos(state):
        table.add_row(str(todo.id), todo.text, "x" if todo.completed else "")
    return table


def main():
    store = Store(Todos())
    store.subscribe(RichPrinter(title="Current TODOs", render=todo_table))

    store.dispatch(Add(Todo(0, "First thing!")))
    store.dispatch(Add(Todo(1, "Second thing!")))
    store.dispatch(Toggle(0))
    store.dispatch(SetVisibility(Visibility.COMPLETED))
    store.dispatch(SetVisibility(Visibility.COMPLETED))  # no-op, nothing printed
    store.dispatch(SetVisibility(Visibility.ACTIVE))


if __name__ == "__main__":
    main()
