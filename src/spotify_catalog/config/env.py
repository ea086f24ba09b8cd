"""Typed readers for ``SPOTIFY_*`` style environment variables."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Read every variable in ``names``; all blank or unset ones are reported together."""

    values = {name: os.getenv(name, "") for name in names}
    missing = sorted(name for name, value in values.items() if not value.strip())
    if missing:
        raise MissingConfigurationError(
            f"Missing configuration for: {', '.join(missing)}",
            names=missing,
        )
    return values


def optional_env_int(name: str, default: int) -> int:
    """Return an integer environment variable, or ``default`` when unset/blank."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def optional_env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()
