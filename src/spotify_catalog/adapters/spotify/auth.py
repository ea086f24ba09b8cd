"""Access token lifecycle for the Spotify accounts service."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from spotify_catalog.errors import (
    DomainError,
    ErrorCode,
    ErrorContext,
    RequestInfo,
    extract_error_message,
)

from .schema import TokenResponse

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from spotify_catalog.config.spotify import SpotifyCredentials

log = getLogger(__name__)

CLIENT_TOKEN_SAFETY_MARGIN = timedelta(seconds=60)
SESSION_TOKEN_SAFETY_MARGIN = timedelta(minutes=5)
_TOKEN_REQUEST_TIMEOUT_SECONDS = 10.0


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class AccessToken:
    access_token: str = field(repr=False)
    expires_at: datetime
    token_type: str = "Bearer"
    refresh_token: str | None = field(default=None, repr=False)
    scope: str | None = None

    @classmethod
    def from_response(
        cls,
        payload: TokenResponse,
        *,
        issued_at: datetime,
        previous_refresh_token: str | None = None,
    ) -> AccessToken:
        return cls(
            access_token=payload.access_token,
            expires_at=issued_at + timedelta(seconds=payload.expires_in),
            token_type=payload.token_type,
            refresh_token=payload.refresh_token or previous_refresh_token,
            scope=payload.scope,
        )

    def is_expired(self, margin: timedelta, *, now: datetime | None = None) -> bool:
        """True once ``now`` is within ``margin`` of the actual expiry."""

        current = now or _utcnow()
        return current >= self.expires_at - margin


@runtime_checkable
class TokenProvider(Protocol):
    async def get_valid_token(self) -> AccessToken: ...


class TokenManager:
    """Hands out a currently valid bearer token, refreshing it at most once at a time.

    The first caller that finds the cached token missing or inside the safety
    margin starts a refresh task; every caller arriving while that task runs
    awaits the same task instead of hitting the token endpoint again. A failed
    refresh raises an ``AUTHENTICATION_ERROR`` and leaves the cached token as it
    was. The manager never retries on its own; that is the transport's job.

    Tokens seeded with a refresh token (user sessions) are renewed with the
    ``refresh_token`` grant and default to a five minute margin; otherwise the
    ``client_credentials`` grant and a sixty second margin are used.
    """

    def __init__(
        self,
        credentials: SpotifyCredentials,
        *,
        token: AccessToken | None = None,
        safety_margin: timedelta | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = _TOKEN_REQUEST_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._credentials = credentials
        self._token = token
        if safety_margin is None:
            session = token is not None and token.refresh_token is not None
            safety_margin = SESSION_TOKEN_SAFETY_MARGIN if session else CLIENT_TOKEN_SAFETY_MARGIN
        self._safety_margin = safety_margin
        self._client = client
        self._owns_client = client is None
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._inflight: asyncio.Task[AccessToken] | None = None

        log.debug(
            "Initialised token manager for %s (margin=%ss)",
            credentials.token_endpoint,
            self._safety_margin.total_seconds(),
        )

    @property
    def token(self) -> AccessToken | None:
        """The cached token, which may be stale."""
        return self._token

    @property
    def safety_margin(self) -> timedelta:
        return self._safety_margin

    @property
    def refresh_in_progress(self) -> bool:
        return self._inflight is not None

    async def __aenter__(self) -> TokenManager:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_valid_token(self) -> AccessToken:
        token = self._token
        if token is not None and not token.is_expired(self._safety_margin, now=self._clock()):
            return token
        return await self.refresh()

    async def get_auth_header(self) -> dict[str, str]:
        token = await self.get_valid_token()
        return {"Authorization": f"Bearer {token.access_token}"}

    async def refresh(self) -> AccessToken:
        if self._inflight is None:
            self._inflight = asyncio.create_task(
                self._run_refresh(), name="spotify-token-refresh"
            )
        else:
            log.debug("Joining in-flight token refresh")
        # a cancelled waiter must not cancel the refresh other callers depend on
        return await asyncio.shield(self._inflight)

    async def _run_refresh(self) -> AccessToken:
        try:
            token = await self._exchange(self._token)
        finally:
            self._inflight = None
        self._token = token
        log.info("Obtained Spotify access token valid until %s", token.expires_at.isoformat())
        return token

    async def _exchange(self, previous: AccessToken | None) -> AccessToken:
        endpoint = self._credentials.token_endpoint
        if previous is not None and previous.refresh_token:
            data = {"grant_type": "refresh_token", "refresh_token": previous.refresh_token}
        else:
            data = {"grant_type": "client_credentials"}
        context = ErrorContext(
            resource_type="token",
            request_info=RequestInfo(endpoint=endpoint, method="POST"),
        )
        log.info(
            "Requesting Spotify access token",
            extra={"token_endpoint": endpoint, "grant_type": data["grant_type"]},
        )

        issued_at = self._clock()
        try:
            response = await self._http().post(
                endpoint,
                data=data,
                auth=httpx.BasicAuth(self._credentials.client_id, self._credentials.client_secret),
                timeout=self._timeout_seconds,
            )
        except httpx.HTTPError as exc:
            log.error("Token request to %s failed: %s", endpoint, exc)
            raise DomainError(
                f"Authentication failed: {exc}",
                code=ErrorCode.AUTHENTICATION,
                context=context,
                cause=exc,
            ) from exc

        if not response.is_success:
            detail = extract_error_message(response) or response.reason_phrase
            log.error(
                "Token endpoint answered %s: %s",
                response.status_code,
                detail,
                extra={"token_endpoint": endpoint, "status": response.status_code},
            )
            raise DomainError(
                f"Authentication failed: {response.status_code} {detail}",
                code=ErrorCode.AUTHENTICATION,
                status_code=response.status_code,
                context=context,
            )

        try:
            payload = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise DomainError(
                "Authentication failed: no access token in response",
                code=ErrorCode.AUTHENTICATION,
                status_code=response.status_code,
                context=context,
                cause=exc,
            ) from exc

        return AccessToken.from_response(
            payload,
            issued_at=issued_at,
            previous_refresh_token=previous.refresh_token if previous else None,
        )

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._client
