"""Tests for the bundled development middleware and subscribers."""

import logging
from dataclasses import dataclass

import pytest
from rich.console import Console

from fluxstore import Changed, Store, Unchanged, bind, middleware, reducer
from fluxstore.devtools import RichPrinter


@dataclass(frozen=True)
class Rename:
    name: str


@reducer
class Profile:
    name: str = bind("rename", default="anon")


def rename(value, action):
    if isinstance(action, Rename) and action.name != value:
        return Changed(action.name)
    return Unchanged(value)


def recording_console():
    return Console(record=True, width=80, color_system=None)


@pytest.mark.unit
@pytest.mark.middleware
def test_logger_logs_action_and_next_state(caplog):
    store = Store(Profile(), middleware("fluxstore.devtools.logger"))

    with caplog.at_level(logging.INFO, logger="fluxstore.devtools"):
        store.dispatch(Rename("ada"))

    messages = [record.getMessage() for record in caplog.records]
    assert messages == [
        "dispatching Rename(name='ada')",
        "next state Profile(name='ada')",
    ]


@pytest.mark.unit
@pytest.mark.middleware
def test_rich_logger_prints_to_shared_console(monkeypatch):
    console = recording_console()
    monkeypatch.setattr("fluxstore.devtools._console", console)
    store = Store(Profile(), middleware("fluxstore.devtools:rich_logger"))

    store.dispatch(Rename("ada"))

    output = console.export_text()
    assert "dispatching Rename(name='ada')" in output
    assert "next state" in output


@pytest.mark.unit
@pytest.mark.store
def test_rich_printer_prints_state_on_change():
    console = recording_console()
    store = Store(Profile())
    store.subscribe(RichPrinter(title="profile", console=console))

    store.dispatch(Rename("ada"))
    store.dispatch(Rename("ada"))

    output = console.export_text()
    assert output.count("profile") == 1
    assert "ada" in output


@pytest.mark.unit
@pytest.mark.store
def test_rich_printer_uses_render_function():
    console = recording_console()
    store = Store(Profile())
    store.subscribe(
        RichPrinter(render=lambda s: f"hello {s.get_state().name}", console=console)
    )

    store.dispatch(Rename("grace"))

    assert "hello grace" in console.export_text()
