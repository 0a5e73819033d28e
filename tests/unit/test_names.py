"""Tests for binding name lists and name resolution."""

import os.path

import pytest

from fluxstore import MalformedBindingError, NameResolver, UnresolvedNameError, split_names
from fluxstore.names import entry_name, normalize_entries


def local_transition(value, action):
    return value


NOT_CALLABLE = 42


@pytest.mark.unit
@pytest.mark.parametrize(
    "text, expected",
    [
        ("counter", ["counter"]),
        ("add_todo, toggle_todo", ["add_todo", "toggle_todo"]),
        ("  a ,b,  c  ", ["a", "b", "c"]),
        ("pkg.module.func", ["pkg.module.func"]),
        ("pkg.module:Class.method", ["pkg.module:Class.method"]),
    ],
)
def test_split_names_trims_entries(text, expected):
    """Comma separated names are split and trimmed, keeping order."""
    assert split_names(text) == expected


@pytest.mark.unit
@pytest.mark.parametrize("text", ["", "   ", "a,,b", "a, ", ",a"])
def test_split_names_rejects_empty_entries(text):
    """Empty declarations and empty entries are malformed."""
    with pytest.raises(MalformedBindingError):
        split_names(text)


@pytest.mark.unit
@pytest.mark.parametrize("text", ["1abc", "a b", "a-b", "a.", "a::b", "x()"])
def test_split_names_rejects_invalid_names(text):
    """Entries must be identifiers or dotted paths."""
    with pytest.raises(MalformedBindingError, match="Invalid name"):
        split_names(text)


@pytest.mark.unit
def test_split_names_rejects_non_strings():
    with pytest.raises(MalformedBindingError):
        split_names(None)


@pytest.mark.unit
def test_normalize_entries_accepts_mixed_sequences():
    """Sequences may mix callables and comma separated strings."""
    entries = normalize_entries([local_transition, "a, b"])

    assert entries == [local_transition, "a", "b"]


@pytest.mark.unit
def test_normalize_entries_wraps_single_callable():
    assert normalize_entries(local_transition) == [local_transition]


@pytest.mark.unit
@pytest.mark.parametrize("entries", [[], (), [42], 42])
def test_normalize_entries_rejects_bad_declarations(entries):
    with pytest.raises(MalformedBindingError):
        normalize_entries(entries)


@pytest.mark.unit
def test_resolver_prefers_explicit_namespace():
    """The explicit namespace wins over module globals."""

    def replacement(value, action):
        return value

    resolver = NameResolver({"local_transition": replacement}, modules=[__name__])

    assert resolver.resolve("local_transition") is replacement


@pytest.mark.unit
def test_resolver_searches_module_globals():
    resolver = NameResolver(modules=[__name__])

    assert resolver.resolve("local_transition") is local_transition


@pytest.mark.unit
def test_resolver_imports_dotted_paths():
    """Dotted and colon paths are imported when not found elsewhere."""
    resolver = NameResolver()

    assert resolver.resolve("os.path.join") is os.path.join
    assert resolver.resolve("os.path:join") is os.path.join


@pytest.mark.unit
def test_resolver_walks_attributes_from_module_globals():
    """A dotted name starting with a module global walks its attributes."""
    resolver = NameResolver(modules=[__name__])

    assert resolver.resolve("os.path.join") is os.path.join


@pytest.mark.unit
def test_resolver_passes_callables_through():
    assert NameResolver().resolve(local_transition) is local_transition


@pytest.mark.unit
def test_resolver_reports_unknown_names():
    resolver = NameResolver(modules=[__name__])

    with pytest.raises(UnresolvedNameError, match="no_such_function"):
        resolver.resolve("no_such_function")


@pytest.mark.unit
def test_resolver_rejects_non_callables():
    resolver = NameResolver(modules=[__name__])

    with pytest.raises(UnresolvedNameError, match="non-callable"):
        resolver.resolve("NOT_CALLABLE")


@pytest.mark.unit
def test_resolver_reports_failed_imports():
    with pytest.raises(UnresolvedNameError, match="cannot import"):
        NameResolver().resolve("no_such_package_xyz.func")


@pytest.mark.unit
def test_resolver_reports_missing_attributes():
    with pytest.raises(UnresolvedNameError, match="no attribute"):
        NameResolver().resolve("os.path.no_such_function")


@pytest.mark.unit
def test_entry_name_uses_callable_name():
    assert entry_name(local_transition) == "local_transition"
    assert entry_name("pkg.mod:func") == "pkg.mod.func"
