"""Errors raised while assembling client settings.

They report misuse of the library, such as a blank client secret or a
non-numeric retry count. Failures observed on the wire are ``DomainError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """A setting is present but cannot be used."""


class MissingConfigurationError(ConfigurationError):
    """Required settings are absent or blank; ``names`` lists them."""

    def __init__(self, message: str, *, names: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.names = tuple(names)
