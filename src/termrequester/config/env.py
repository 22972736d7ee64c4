"""Reading settings from the process environment."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable


def _read(name: str) -> str | None:
    # blank counts as unset
    value = os.environ.get(name, "").strip()
    return value or None


def require_env_vars(names: Iterable[str]) -> dict[str, str]:
    """Return every named variable, or fail once listing all that are missing."""

    found = {name: _read(name) for name in names}
    missing = [name for name, value in found.items() if value is None]
    if missing:
        raise MissingConfigurationError(missing)
    return {name: value for name, value in found.items() if value is not None}


def optional_env_var(name: str, default: str) -> str:
    return _read(name) or default
