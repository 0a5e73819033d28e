"""
Store configuration.

Defaults live in the module level constants below; ``StoreConfig.from_env``
lets deployments flip the fault policy without code changes.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

# ==============================================================================================
# Defaults
# ==============================================================================================

DEFAULT_STORE_NAME = "store"

# On a transition fault: raise TransitionFault and poison the store (False),
# or log and abort the process (True).
DEFAULT_ABORT_ON_FAULT = False

# Deep copy field values into snapshots so later dispatches can't alter them.
DEFAULT_COPY_SNAPSHOTS = True

ENV_PREFIX = "FLUXSTORE_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: {raw!r}")


@dataclass(frozen=True)
class StoreConfig:
    """
    Per-store settings.

    Attributes:
        name: Label used in log records.
        abort_on_fault: Abort the process on a transition fault instead of
            raising TransitionFault.
        copy_snapshots: Deep copy values captured by ``Store.snapshot()``.
    """

    name: str = DEFAULT_STORE_NAME
    abort_on_fault: bool = DEFAULT_ABORT_ON_FAULT
    copy_snapshots: bool = DEFAULT_COPY_SNAPSHOTS

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "StoreConfig":
        """
        Build a config from ``FLUXSTORE_*`` environment variables.

        Recognized: FLUXSTORE_NAME, FLUXSTORE_ABORT_ON_FAULT,
        FLUXSTORE_COPY_SNAPSHOTS. Keyword overrides win over the environment.
        """
        environ = os.environ if environ is None else environ
        values = {}

        name = environ.get(ENV_PREFIX + "NAME")
        if name:
            values["name"] = name
        for field_name in ("abort_on_fault", "copy_snapshots"):
            key = ENV_PREFIX + field_name.upper()
            if key in environ:
                values[field_name] = _parse_bool(key, environ[key])

        values.update(overrides)
        return cls(**values)

    def with_name(self, name: str) -> "StoreConfig":
        return replace(self, name=name)
