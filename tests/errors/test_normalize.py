from __future__ import annotations

import httpx
import pytest

from spotify_catalog.errors import (
    DomainError,
    ErrorCode,
    ErrorContext,
    Severity,
    classify,
    is_retryable,
    to_normalized,
)


def test_normalization_is_deterministic() -> None:
    error = DomainError(
        "Rate limit exceeded",
        code=ErrorCode.RATE_LIMIT,
        status_code=429,
        retry_after_ms=1000,
        context=ErrorContext(resource_type="track"),
    )

    first = to_normalized(error)
    second = to_normalized(error)

    assert (first.code, first.status_code, first.is_retryable) == (
        second.code,
        second.status_code,
        second.is_retryable,
    )
    assert first.severity is Severity.MEDIUM
    assert first.retry_after_ms == 1000
    assert first.context.resource_type == "track"


def test_missing_status_falls_back_to_registry_default() -> None:
    normalized = to_normalized(DomainError("bad body", code=ErrorCode.INVALID_RESPONSE))

    assert normalized.status_code == 500
    assert normalized.is_retryable is False


@pytest.mark.parametrize(
    ("code", "status", "expected"),
    [
        (ErrorCode.RATE_LIMIT, 429, True),
        (ErrorCode.NETWORK, None, True),
        (ErrorCode.SERVER_ERROR, 503, True),
        (ErrorCode.UNKNOWN, 500, True),
        (ErrorCode.NOT_FOUND, 404, False),
        (ErrorCode.VALIDATION, 400, False),
        (ErrorCode.AUTHENTICATION, 401, False),
    ],
)
def test_is_retryable(code: ErrorCode, status: int | None, expected: bool) -> None:  # noqa: FBT001
    assert is_retryable(DomainError("x", code=code, status_code=status)) is expected


def test_with_context_keeps_existing_fields_and_chain() -> None:
    cause = ValueError("root")
    original = DomainError("x", code=ErrorCode.NOT_FOUND, context=ErrorContext(resource_id="a"))
    original.__cause__ = cause

    enriched = original.with_context(resource_id="b", resource_type="track")

    assert enriched.context.resource_id == "a"
    assert enriched.context.resource_type == "track"
    assert enriched.__cause__ is cause
    assert original.context.resource_type is None


def test_with_context_returns_self_when_nothing_changes() -> None:
    error = DomainError("x", context=ErrorContext(resource_type="track"))

    assert error.with_context(resource_type="playlist") is error
    assert error.with_context() is error


def test_normalized_json_dump_is_serialisable() -> None:
    dumped = to_normalized(DomainError("x", code=ErrorCode.NETWORK)).model_dump(mode="json")

    assert dumped["code"] == "NETWORK_ERROR"
    assert dumped["status_code"] == 0
    assert dumped["severity"] == "high"


@pytest.mark.parametrize(
    "raw",
    [
        httpx.Response(429, headers={"retry-after": "3"}),
        httpx.Response(503),
        httpx.Response(400, json={"error": {"status": 400, "message": "Invalid market code"}}),
        httpx.ConnectError("connection refused"),
    ],
)
def test_classify_then_normalize_is_stable(raw: httpx.Response | Exception) -> None:
    first = to_normalized(classify(raw))
    second = to_normalized(classify(raw))

    assert first.model_dump(exclude={"timestamp", "context"}) == second.model_dump(
        exclude={"timestamp", "context"}
    )
