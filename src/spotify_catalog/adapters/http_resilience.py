from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Collection, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter

from spotify_catalog.errors import (
    NETWORK_EXCEPTIONS,
    DomainError,
    ErrorCode,
    ErrorContext,
    RequestInfo,
    classify,
    log_error,
)

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, TimeoutTypes

    from spotify_catalog.adapters.spotify.auth import TokenProvider
    from spotify_catalog.config.http_resilience import ResilienceConfig, RetryPolicy

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Jitter = Callable[[float, float], float]
QueryParams = Mapping[str, str | int | float | bool | None]

# raised by httpx while encoding the URL or body, before anything is sent
REQUEST_BUILD_ERRORS: tuple[type[Exception], ...] = (httpx.InvalidURL, TypeError, ValueError)

REDACTED = "[REDACTED]"
SENSITIVE_HEADERS = frozenset(
    {"authorization", "proxy-authorization", "cookie", "set-cookie", "x-api-key"}
)


def is_sensitive_header(name: str) -> bool:
    lowered = name.lower()
    return lowered in SENSITIVE_HEADERS or "api-key" in lowered or "apikey" in lowered


def redact_headers(headers: Mapping[str, str] | httpx.Headers | None) -> dict[str, str]:
    if headers is None:
        return {}
    items = headers.multi_items() if isinstance(headers, httpx.Headers) else headers.items()
    return {name: REDACTED if is_sensitive_header(name) else value for name, value in items}


def backoff_delay(policy: RetryPolicy, attempt: int, *, jitter: Jitter = random.uniform) -> float:
    """Delay before re-issuing after failed ``attempt`` (0-based), in seconds."""

    base = policy.retry_delay
    return min(base * 2**attempt + jitter(0, base), policy.max_delay)


class CallState(StrEnum):
    PENDING = "pending"
    AUTHENTICATING = "authenticating"
    IN_FLIGHT = "in_flight"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILED = "failed"


class RequestOptions(TypedDict, total=False):
    params: QueryParams | None
    json: object
    data: Mapping[str, str] | None
    headers: Mapping[str, str] | None
    timeout: float | None
    acceptable_statuses: Collection[int]


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


@dataclass(slots=True)
class RequestAttempt:
    """One logical request, carried unchanged across its retries."""

    method: str
    path: str
    timeout: float
    params: dict[str, Any] | None = None
    json: object = None
    data: Mapping[str, str] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    acceptable_statuses: frozenset[int] = frozenset()
    attempt: int = 0
    state: CallState = CallState.PENDING

    def request_info(self) -> RequestInfo:
        return RequestInfo(
            endpoint=self.path,
            method=self.method,
            params=self.params,
            attempt=self.attempt,
        )


@dataclass(frozen=True, slots=True)
class SendResult:
    response: httpx.Response | None = None
    failure: Exception | None = None


class ResilientClient:
    """Authenticated JSON client with bounded retries and error classification.

    Each call runs the stages ``authenticate`` -> ``send`` -> (on failure)
    ``should_retry`` / ``backoff`` -> ``classify_failure``. The stages are public
    so tests can drive them one at a time. Nothing but :class:`DomainError`
    leaves :meth:`request`.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
        jitter: Jitter = random.uniform,
    ) -> None:
        self.config = config
        self._token_provider = token_provider
        self._sleep = sleep
        self._jitter = jitter
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        client_kwargs: AsyncClientOptions = {"timeout": config.timeout_seconds}
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if config.default_headers:
            client_kwargs["headers"] = dict(config.default_headers)
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, **kwargs: Unpack[RequestOptions]) -> Any:
        return await self.execute(self.prepare(method, path, **kwargs))

    async def get(self, path: str, **kwargs: Unpack[RequestOptions]) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Unpack[RequestOptions]) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Unpack[RequestOptions]) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Unpack[RequestOptions]) -> Any:
        return await self.request("DELETE", path, **kwargs)

    def prepare(self, method: str, path: str, **kwargs: Unpack[RequestOptions]) -> RequestAttempt:
        params = kwargs.get("params")
        timeout = kwargs.get("timeout")
        return RequestAttempt(
            method=method.upper(),
            path=path,
            timeout=timeout if timeout is not None else self.config.timeout_seconds,
            params={k: v for k, v in params.items() if v is not None} if params else None,
            json=kwargs.get("json"),
            data=kwargs.get("data"),
            headers=dict(kwargs.get("headers") or {}),
            acceptable_statuses=frozenset(kwargs.get("acceptable_statuses", ())),
        )

    async def execute(self, attempt: RequestAttempt) -> Any:
        while True:
            await self.authenticate(attempt)
            result = await self.send(attempt)
            response = result.response
            if response is not None and self.is_acceptable(attempt, response):
                attempt.state = CallState.SUCCESS
                return self.parse_body(attempt, response)

            if self.should_retry(attempt, result):
                delay = self.backoff(attempt.attempt)
                attempt.state = CallState.RETRYING
                self._log(
                    logging.WARNING,
                    "Retrying %s %s (%s/%s) in %.2fs",
                    attempt.method,
                    attempt.path,
                    attempt.attempt + 1,
                    self.config.retry.retries,
                    delay,
                    attempt=attempt,
                    status=response.status_code if response is not None else None,
                    delay_seconds=round(delay, 3),
                )
                await self._sleep(delay)
                attempt.attempt += 1
                continue

            error = self.classify_failure(attempt, result)
            attempt.state = CallState.FAILED
            log_error(log, error, message=f"{attempt.method} {attempt.path} failed")
            raise error from result.failure

    async def authenticate(self, attempt: RequestAttempt) -> None:
        """Attach the current bearer token; a rotated token replaces the previous one."""

        if self._token_provider is None:
            return
        attempt.state = CallState.AUTHENTICATING
        try:
            token = await self._token_provider.get_valid_token()
        except DomainError as exc:
            attempt.state = CallState.FAILED
            raise exc.with_context(request_info=attempt.request_info()) from exc
        attempt.headers["Authorization"] = f"Bearer {token.access_token}"

    async def send(self, attempt: RequestAttempt) -> SendResult:
        attempt.state = CallState.IN_FLIGHT
        try:
            request = self._client.build_request(
                attempt.method,
                attempt.path,
                params=attempt.params,
                json=attempt.json,
                data=attempt.data,
                headers=attempt.headers,
                timeout=attempt.timeout,
            )
        except REQUEST_BUILD_ERRORS as exc:
            return SendResult(failure=exc)
        self._log(
            logging.INFO,
            "Making %s request to %s",
            attempt.method,
            attempt.path,
            attempt=attempt,
            headers=request.headers,
        )
        try:
            if self._limiter is None:
                response = await self._client.send(request)
            else:
                async with self._limiter:
                    response = await self._client.send(request)
        except httpx.HTTPError as exc:
            self._log(
                logging.WARNING,
                "%s %s failed without a response: %s",
                attempt.method,
                attempt.path,
                exc,
                attempt=attempt,
                error_type=type(exc).__name__,
            )
            return SendResult(failure=exc)

        self._log(
            logging.INFO,
            "Received response from %s with status %s",
            attempt.path,
            response.status_code,
            attempt=attempt,
            status=response.status_code,
            headers=response.headers,
        )
        return SendResult(response=response)

    def is_acceptable(self, attempt: RequestAttempt, response: httpx.Response) -> bool:
        return response.is_success or response.status_code in attempt.acceptable_statuses

    def should_retry(self, attempt: RequestAttempt, result: SendResult) -> bool:
        if attempt.attempt >= self.config.retry.retries:
            return False
        if result.response is None:
            return isinstance(result.failure, NETWORK_EXCEPTIONS)
        status = result.response.status_code
        return status == 429 or status >= 500

    def backoff(self, attempt: int) -> float:
        return backoff_delay(self.config.retry, attempt, jitter=self._jitter)

    def classify_failure(self, attempt: RequestAttempt, result: SendResult) -> DomainError:
        context = ErrorContext(request_info=attempt.request_info())
        if result.response is not None:
            return classify(result.response, context)
        if isinstance(result.failure, REQUEST_BUILD_ERRORS):
            return DomainError(
                f"Cannot build {attempt.method} {attempt.path}: {result.failure}",
                code=ErrorCode.VALIDATION,
                context=context,
                cause=result.failure,
            )
        if result.failure is not None:
            return classify(result.failure, context)
        return DomainError(
            "Request produced neither a response nor an error",
            code=ErrorCode.UNKNOWN,
            context=context,
        )

    def parse_body(self, attempt: RequestAttempt, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DomainError(
                f"Response from {attempt.path} is not valid JSON",
                code=ErrorCode.INVALID_RESPONSE,
                context=ErrorContext(request_info=attempt.request_info()),
                cause=exc,
            ) from exc

    def _log(
        self,
        level: int,
        message: str,
        *args: object,
        attempt: RequestAttempt,
        headers: Mapping[str, str] | httpx.Headers | None = None,
        **fields: object,
    ) -> None:
        # every transport log line goes through here so header redaction cannot be skipped
        if not log.isEnabledFor(level):
            return
        extra: dict[str, object] = {
            "client": self.config.name,
            "method": attempt.method,
            "endpoint": attempt.path,
            "attempt": attempt.attempt,
            "state": attempt.state.value,
            **fields,
        }
        if headers is not None:
            extra["headers"] = redact_headers(headers)
        log.log(level, message, *args, extra=extra)
