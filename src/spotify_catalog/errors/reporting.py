"""Structured logging of domain errors at a severity-derived level."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .codes import Severity
from .types import to_normalized

if TYPE_CHECKING:
    from .types import DomainError

_LEVELS = {
    Severity.HIGH: logging.ERROR,
    Severity.MEDIUM: logging.WARNING,
    Severity.LOW: logging.INFO,
}


def log_error(logger: logging.Logger, error: DomainError, *, message: str = "API request failed") -> None:
    normalized = to_normalized(error)
    logger.log(
        _LEVELS[normalized.severity],
        "%s: %s (%s)",
        message,
        normalized.message,
        normalized.code,
        extra={"error": normalized.model_dump(mode="json")},
    )
