"""
Development middleware and subscribers.

``logger`` writes each action and the resulting state to the
``fluxstore.devtools`` logger. ``rich_logger`` and ``RichPrinter`` pretty
print to a terminal with rich, which is handy in examples and REPL sessions.

These are ordinary middleware, so they are referenced by name like any other:

```python
store = Store(state, middleware("fluxstore.devtools.logger"))
```
"""

import logging
from typing import Any, Callable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.protocol import is_renderable
from rich.text import Text

log = logging.getLogger(__name__)

_console: Optional[Console] = None


def get_console() -> Console:
    """Shared console for the rich helpers, created on first use."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def logger(store: Any, next: Callable[[Any, Any], Any], action: Any) -> None:
    log.info("dispatching %r", action)
    next(store, action)
    log.info("next state %r", store.get_state())


def rich_logger(store: Any, next: Callable[[Any, Any], Any], action: Any) -> None:
    console = get_console()
    console.print(Text.assemble(("dispatching ", "bold cyan"), repr(action)))
    next(store, action)
    console.print(Panel(Pretty(store.get_state()), title="next state", expand=False))


class RichPrinter:
    """
    Subscriber printing the state after each change.

    Args:
        title: Panel title.
        render: Optional function turning the store into what gets printed;
            defaults to the root state.
        console: Console to print to; defaults to the shared one.
    """

    def __init__(
        self,
        title: str = "state changed",
        render: Optional[Callable[[Any], Any]] = None,
        console: Optional[Console] = None,
    ):
        self.title = title
        self.render = render
        self.console = console

    def update(self, store: Any) -> None:
        console = self.console if self.console is not None else get_console()
        body = self.render(store) if self.render else store.get_state()
        if not is_renderable(body):
            body = Pretty(body)
        console.print(Panel(body, title=self.title, expand=False))
