"""Closed set of error codes and their static metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class ErrorCode(StrEnum):
    NETWORK = "NETWORK_ERROR"
    RATE_LIMIT = "RATE_LIMIT_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_ID = "INVALID_ID_FORMAT"
    INVALID_MARKET = "INVALID_MARKET"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    INVALID_METHOD = "INVALID_METHOD"
    INVALID_PARAM = "INVALID_PARAM"
    SERVER_ERROR = "SERVER_ERROR"
    UNKNOWN = "UNKNOWN_ERROR"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class ErrorTypeMetadata:
    code: ErrorCode
    is_retryable: bool
    default_message: str
    severity: Severity
    default_status_code: int


def _entry(
    code: ErrorCode,
    *,
    retryable: bool,
    message: str,
    severity: Severity,
    status: int,
) -> tuple[ErrorCode, ErrorTypeMetadata]:
    return code, ErrorTypeMetadata(
        code=code,
        is_retryable=retryable,
        default_message=message,
        severity=severity,
        default_status_code=status,
    )


ERROR_REGISTRY: Mapping[ErrorCode, ErrorTypeMetadata] = MappingProxyType(
    dict(
        (
            _entry(
                ErrorCode.NETWORK,
                retryable=True,
                message="Network error occurred",
                severity=Severity.HIGH,
                status=0,
            ),
            _entry(
                ErrorCode.RATE_LIMIT,
                retryable=True,
                message="Rate limit exceeded",
                severity=Severity.MEDIUM,
                status=429,
            ),
            _entry(
                ErrorCode.VALIDATION,
                retryable=False,
                message="Invalid request data provided",
                severity=Severity.HIGH,
                status=400,
            ),
            _entry(
                ErrorCode.AUTHENTICATION,
                retryable=False,
                message="Authentication failed",
                severity=Severity.HIGH,
                status=401,
            ),
            _entry(
                ErrorCode.NOT_FOUND,
                retryable=False,
                message="Resource not found",
                severity=Severity.MEDIUM,
                status=404,
            ),
            _entry(
                ErrorCode.INVALID_ID,
                retryable=False,
                message="Invalid ID format provided",
                severity=Severity.HIGH,
                status=400,
            ),
            _entry(
                ErrorCode.INVALID_MARKET,
                retryable=False,
                message="Invalid market code provided",
                severity=Severity.MEDIUM,
                status=400,
            ),
            _entry(
                ErrorCode.INVALID_RESPONSE,
                retryable=False,
                message="Invalid response received",
                severity=Severity.HIGH,
                status=500,
            ),
            _entry(
                ErrorCode.INVALID_METHOD,
                retryable=False,
                message="Invalid HTTP method used",
                severity=Severity.HIGH,
                status=405,
            ),
            _entry(
                ErrorCode.INVALID_PARAM,
                retryable=False,
                message="Invalid request parameter",
                severity=Severity.MEDIUM,
                status=400,
            ),
            _entry(
                ErrorCode.SERVER_ERROR,
                retryable=True,
                message="Server error occurred",
                severity=Severity.HIGH,
                status=500,
            ),
            _entry(
                ErrorCode.UNKNOWN,
                retryable=False,
                message="An unknown error occurred",
                severity=Severity.HIGH,
                status=500,
            ),
        )
    )
)

_missing = set(ErrorCode) - set(ERROR_REGISTRY)
if _missing:  # pragma: no cover - guards edits to the table above
    raise RuntimeError(f"Error registry is missing codes: {sorted(_missing)}")
del _missing


def lookup_metadata(code: ErrorCode) -> ErrorTypeMetadata:
    """Return the static metadata registered for ``code``."""

    return ERROR_REGISTRY[code]
