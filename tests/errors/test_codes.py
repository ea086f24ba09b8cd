from __future__ import annotations

import pytest

from spotify_catalog.errors import ERROR_REGISTRY, ErrorCode, Severity, lookup_metadata


def test_every_code_has_metadata() -> None:
    assert set(ERROR_REGISTRY) == set(ErrorCode)
    for code, metadata in ERROR_REGISTRY.items():
        assert metadata.code is code
        assert metadata.default_message


def test_registry_is_read_only() -> None:
    with pytest.raises(TypeError):
        ERROR_REGISTRY[ErrorCode.UNKNOWN] = ERROR_REGISTRY[ErrorCode.NETWORK]  # type: ignore[index]


@pytest.mark.parametrize(
    ("code", "retryable", "status"),
    [
        (ErrorCode.NETWORK, True, 0),
        (ErrorCode.RATE_LIMIT, True, 429),
        (ErrorCode.SERVER_ERROR, True, 500),
        (ErrorCode.AUTHENTICATION, False, 401),
        (ErrorCode.NOT_FOUND, False, 404),
        (ErrorCode.INVALID_MARKET, False, 400),
        (ErrorCode.INVALID_METHOD, False, 405),
        (ErrorCode.INVALID_RESPONSE, False, 500),
    ],
)
def test_registry_entries(code: ErrorCode, retryable: bool, status: int) -> None:  # noqa: FBT001
    metadata = lookup_metadata(code)

    assert metadata.is_retryable is retryable
    assert metadata.default_status_code == status


def test_codes_serialise_to_wire_names() -> None:
    assert ErrorCode.INVALID_ID == "INVALID_ID_FORMAT"
    assert ErrorCode.UNKNOWN.value == "UNKNOWN_ERROR"
    assert lookup_metadata(ErrorCode.RATE_LIMIT).severity is Severity.MEDIUM
