"""Translate raw failures into :class:`DomainError` values.

This is the only place that inspects upstream message text. Spotify answers a
malformed market or id with a plain 400 and a human readable message, so the
400 branch falls back to matching that text; every other decision is made on
status codes and exception types.
"""

from __future__ import annotations

import math
import re
from logging import getLogger

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .codes import ErrorCode, lookup_metadata
from .types import DomainError, ErrorContext, RequestInfo

log = getLogger(__name__)

_MARKET_PATTERN = re.compile(r"\bmarket\b", re.IGNORECASE)
_ID_PATTERN = re.compile(r"\binvalid\s+(?:[a-z]+\s+)?id\b|\bbase62\b", re.IGNORECASE)

NETWORK_EXCEPTIONS: tuple[type[BaseException], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    httpx.ProxyError,
    ConnectionError,
    TimeoutError,
)


class _ApiErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: int | None = None
    message: str | None = None


class ErrorEnvelope(BaseModel):
    """Error body shapes returned by the Web API and the accounts service."""

    model_config = ConfigDict(extra="ignore")

    error: _ApiErrorBody | str | None = None
    error_description: str | None = None

    @property
    def message(self) -> str | None:
        if isinstance(self.error, _ApiErrorBody):
            return self.error.message
        return self.error_description or self.error


def extract_error_message(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        envelope = ErrorEnvelope.model_validate(payload)
    except ValidationError:
        return None
    return envelope.message or None


def parse_retry_after_ms(response: httpx.Response) -> int:
    """Return the ``retry-after`` header in milliseconds, 0 when absent or unparsable."""

    raw = response.headers.get("retry-after")
    if raw is None:
        return 0
    try:
        seconds = float(raw.strip())
    except ValueError:
        return 0
    if not math.isfinite(seconds):
        return 0
    return max(0, int(seconds * 1000))


def classify(
    raw: BaseException | httpx.Response,
    context: ErrorContext | None = None,
) -> DomainError:
    """Map ``raw`` to exactly one :class:`ErrorCode` with consistent metadata."""

    match raw:
        case DomainError():
            return raw.with_context(context)
        case httpx.HTTPStatusError():
            return _from_response(raw.response, context, cause=raw)
        case httpx.Response():
            return _from_response(raw, context, cause=None)
        case _ if isinstance(raw, NETWORK_EXCEPTIONS):
            detail = str(raw) or type(raw).__name__
            return DomainError(
                f"{lookup_metadata(ErrorCode.NETWORK).default_message}: {detail}",
                code=ErrorCode.NETWORK,
                context=context,
                cause=raw,
            )
        case _:
            message = str(raw) or lookup_metadata(ErrorCode.UNKNOWN).default_message
            return DomainError(message, code=ErrorCode.UNKNOWN, context=context, cause=raw)


def _code_for_status(status: int, message: str | None) -> ErrorCode:
    match status:
        case 429:
            return ErrorCode.RATE_LIMIT
        case 401:
            return ErrorCode.AUTHENTICATION
        case 404:
            return ErrorCode.NOT_FOUND
        case 400:
            if message and _MARKET_PATTERN.search(message):
                return ErrorCode.INVALID_MARKET
            if message and _ID_PATTERN.search(message):
                return ErrorCode.INVALID_ID
            return ErrorCode.VALIDATION
        case _ if status >= 500:
            return ErrorCode.SERVER_ERROR
        case _:
            return ErrorCode.UNKNOWN


def _from_response(
    response: httpx.Response,
    context: ErrorContext | None,
    *,
    cause: BaseException | None,
) -> DomainError:
    status = response.status_code
    upstream_message = extract_error_message(response)
    code = _code_for_status(status, upstream_message)
    message = upstream_message or lookup_metadata(code).default_message

    derived = _request_context(response)
    merged = derived if context is None else context.merge(derived)

    retry_after_ms = parse_retry_after_ms(response) if code is ErrorCode.RATE_LIMIT else None
    log.debug("Classified HTTP %s as %s", status, code)
    return DomainError(
        message,
        code=code,
        status_code=status,
        context=merged,
        cause=cause,
        retry_after_ms=retry_after_ms,
    )


def _request_context(response: httpx.Response) -> ErrorContext | None:
    try:
        request = response.request
    except RuntimeError:
        return None
    return ErrorContext(request_info=RequestInfo(endpoint=request.url.path, method=request.method))
