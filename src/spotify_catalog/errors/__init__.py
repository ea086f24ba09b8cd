"""Error taxonomy: codes, the domain error type and classification."""

from __future__ import annotations

from .classify import NETWORK_EXCEPTIONS, classify, extract_error_message, parse_retry_after_ms
from .codes import ERROR_REGISTRY, ErrorCode, ErrorTypeMetadata, Severity, lookup_metadata
from .reporting import log_error
from .types import (
    DomainError,
    ErrorContext,
    NormalizedError,
    RequestInfo,
    ValidationDetails,
    is_retryable,
    to_normalized,
)

__all__ = [
    "ERROR_REGISTRY",
    "NETWORK_EXCEPTIONS",
    "DomainError",
    "ErrorCode",
    "ErrorContext",
    "ErrorTypeMetadata",
    "NormalizedError",
    "RequestInfo",
    "Severity",
    "ValidationDetails",
    "classify",
    "extract_error_message",
    "is_retryable",
    "log_error",
    "lookup_metadata",
    "parse_retry_after_ms",
    "to_normalized",
]
