"""
Binding name lists.

Reducer and middleware bindings are declared as comma separated name lists,
e.g. ``bind("add_todo, toggle_todo")`` or ``middleware("audit, logger")``.
This module splits and validates those lists when they are declared, and
resolves each name to a callable when the store is composed.

Resolution order for a name:
    1. the explicit namespace passed by the application
    2. the globals of the module(s) that made the declaration
    3. a dotted import path (``pkg.module.func`` or ``pkg.module:func``)
"""

import importlib
import logging
import re
import sys
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union

from .errors import MalformedBindingError, UnresolvedNameError

logger = logging.getLogger(__name__)

# A single entry: identifier, optionally dotted, optionally with one ':' before
# the attribute part of an import path.
_NAME_PATTERN = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*"
    r"(:[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*)?$"
)

NameEntry = Union[str, Callable[..., Any]]
NameList = Union[str, Callable[..., Any], Sequence[NameEntry]]


def split_names(text: str, *, what: str = "name list") -> List[str]:
    """
    Split a comma separated declaration into trimmed names.

    Raises MalformedBindingError for an empty declaration, an empty entry
    (``"a,,b"``, ``"a, "``) or an entry that is not a valid name.
    """
    if not isinstance(text, str):
        raise MalformedBindingError(f"{what} must be a string, got {type(text).__name__}")
    if not text.strip():
        raise MalformedBindingError(f"Empty {what}")

    names = []
    for position, raw in enumerate(text.split(",")):
        name = raw.strip()
        if not name:
            raise MalformedBindingError(
                f"Empty entry at position {position} in {what} {text!r}"
            )
        if not _NAME_PATTERN.match(name):
            raise MalformedBindingError(f"Invalid name {name!r} in {what} {text!r}")
        names.append(name)
    return names


def normalize_entries(entries: NameList, *, what: str = "name list") -> List[NameEntry]:
    """
    Turn a declaration into a flat list of names and callables.

    Accepts a comma separated string, a single callable, or a sequence mixing
    both. String items inside a sequence may themselves be comma separated.
    """
    if isinstance(entries, str):
        return list(split_names(entries, what=what))
    if callable(entries):
        return [entries]

    try:
        items = list(entries)
    except TypeError:
        raise MalformedBindingError(
            f"{what} must be a string, a callable or a sequence, "
            f"got {type(entries).__name__}"
        ) from None

    if not items:
        raise MalformedBindingError(f"Empty {what}")

    result: List[NameEntry] = []
    for item in items:
        if isinstance(item, str):
            result.extend(split_names(item, what=what))
        elif callable(item):
            result.append(item)
        else:
            raise MalformedBindingError(
                f"Entries of {what} must be names or callables, got {item!r}"
            )
    return result


def entry_name(entry: NameEntry) -> str:
    """Display name of an entry, used for logging and generated link names."""
    if isinstance(entry, str):
        return entry.replace(":", ".")
    return getattr(entry, "__name__", None) or type(entry).__name__


class NameResolver:
    """
    Resolves declared names to callables.

    Args:
        namespace: Explicit mapping searched first.
        modules: Names of the modules whose globals are searched next, in
            order (normally the module that made the declaration).
    """

    def __init__(
        self,
        namespace: Optional[Mapping[str, Any]] = None,
        modules: Sequence[Optional[str]] = (),
    ):
        self.namespace = dict(namespace or {})
        self.modules = tuple(m for m in modules if m)

    def resolve(self, entry: NameEntry) -> Callable[..., Any]:
        if not isinstance(entry, str):
            return entry

        target = self._lookup(entry)
        if not callable(target):
            raise UnresolvedNameError(
                entry, f"resolves to non-callable {type(target).__name__}"
            )
        return target

    def resolve_all(self, entries: Iterable[NameEntry]) -> List[Callable[..., Any]]:
        return [self.resolve(entry) for entry in entries]

    def _lookup(self, name: str) -> Any:
        if name in self.namespace:
            return self.namespace[name]

        if ":" not in name:
            head, _, rest = name.partition(".")
            for module_globals in self._module_globals():
                if head in module_globals:
                    return self._walk(module_globals[head], rest, name)

        return self._import(name)

    def _module_globals(self) -> Iterable[Mapping[str, Any]]:
        for name in self.modules:
            module = sys.modules.get(name)
            if module is not None:
                yield vars(module)

    def _walk(self, obj: Any, path: str, name: str) -> Any:
        for part in filter(None, path.split(".")):
            try:
                obj = getattr(obj, part)
            except AttributeError:
                raise UnresolvedNameError(name, f"no attribute '{part}'") from None
        return obj

    def _import(self, name: str) -> Any:
        if ":" in name:
            module_name, _, attr_path = name.partition(":")
        elif "." in name:
            module_name, _, attr_path = name.rpartition(".")
        else:
            where = f" in {', '.join(self.modules)}" if self.modules else ""
            raise UnresolvedNameError(name, f"not found{where}")

        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise UnresolvedNameError(name, f"cannot import '{module_name}' ({exc})") from exc

        logger.debug("Resolved %s through import of %s", name, module_name)
        return self._walk(module, attr_path, name)
