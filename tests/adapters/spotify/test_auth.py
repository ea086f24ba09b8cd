from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from spotify_catalog.adapters.spotify import (
    CLIENT_TOKEN_SAFETY_MARGIN,
    SESSION_TOKEN_SAFETY_MARGIN,
    AccessToken,
    TokenManager,
)
from spotify_catalog.config import MissingConfigurationError, SpotifyCredentials
from spotify_catalog.errors import DomainError, ErrorCode
from tests.support.spotify_api import TOKEN_URL, TokenEndpoint

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _manager(
    credentials: SpotifyCredentials,
    endpoint: TokenEndpoint,
    **kwargs: object,
) -> TokenManager:
    return TokenManager(credentials, client=endpoint.client(), clock=lambda: NOW, **kwargs)  # type: ignore[arg-type]


def _run[T](manager: TokenManager, call: Callable[[TokenManager], Awaitable[T]]) -> T:
    async def runner() -> T:
        try:
            return await call(manager)
        finally:
            await manager.aclose()

    return asyncio.run(runner())


def test_concurrent_callers_share_one_refresh(
    credentials: SpotifyCredentials,
) -> None:
    endpoint = TokenEndpoint(latency=0.01)
    manager = _manager(credentials, endpoint)

    async def many(m: TokenManager) -> list[AccessToken]:
        return list(await asyncio.gather(*(m.get_valid_token() for _ in range(10))))

    tokens = _run(manager, many)

    assert len(endpoint.calls) == 1
    assert {token.access_token for token in tokens} == {"token-1"}
    assert manager.refresh_in_progress is False


def test_fresh_token_is_reused(credentials: SpotifyCredentials, token_endpoint: TokenEndpoint) -> None:
    cached = AccessToken(access_token="cached", expires_at=NOW + timedelta(minutes=10))
    manager = _manager(credentials, token_endpoint, token=cached)

    token = _run(manager, lambda m: m.get_valid_token())

    assert token is cached
    assert token_endpoint.calls == []


def test_token_inside_margin_is_refreshed(
    credentials: SpotifyCredentials,
    token_endpoint: TokenEndpoint,
) -> None:
    cached = AccessToken(access_token="cached", expires_at=NOW + timedelta(seconds=30))
    manager = _manager(credentials, token_endpoint, token=cached)

    token = _run(manager, lambda m: m.get_valid_token())

    assert token.access_token == "token-1"
    assert token.expires_at == NOW + timedelta(seconds=3600)
    assert manager.token is token
    assert len(token_endpoint.calls) == 1


def test_client_credentials_request_shape(
    credentials: SpotifyCredentials,
    token_endpoint: TokenEndpoint,
) -> None:
    manager = _manager(credentials, token_endpoint)

    header = _run(manager, lambda m: m.get_auth_header())

    assert header == {"Authorization": "Bearer token-1"}
    request = token_endpoint.calls[0]
    assert str(request.url) == TOKEN_URL
    assert request.method == "POST"
    assert request.headers["Authorization"].startswith("Basic ")
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert request.content == b"grant_type=client_credentials"


def test_failed_refresh_keeps_stale_token(credentials: SpotifyCredentials) -> None:
    endpoint = TokenEndpoint(status_code=401)
    stale = AccessToken(access_token="stale", expires_at=NOW - timedelta(seconds=1))
    manager = _manager(credentials, endpoint, token=stale)

    with pytest.raises(DomainError) as exc:
        _run(manager, lambda m: m.get_valid_token())

    assert exc.value.code is ErrorCode.AUTHENTICATION
    assert exc.value.status_code == 401
    assert "Invalid client secret" in exc.value.message
    assert exc.value.context.resource_type == "token"
    assert manager.token is stale
    assert manager.refresh_in_progress is False


def test_concurrent_callers_all_see_the_failure(credentials: SpotifyCredentials) -> None:
    endpoint = TokenEndpoint(status_code=500, latency=0.01)
    manager = _manager(credentials, endpoint)

    async def many(m: TokenManager) -> list[BaseException | AccessToken]:
        return list(
            await asyncio.gather(*(m.get_valid_token() for _ in range(5)), return_exceptions=True)
        )

    results = _run(manager, many)

    assert len(endpoint.calls) == 1
    assert all(isinstance(result, DomainError) for result in results)
    assert {result.code for result in results} == {ErrorCode.AUTHENTICATION}  # type: ignore[union-attr]


def test_next_call_after_failure_tries_again(credentials: SpotifyCredentials) -> None:
    endpoint = TokenEndpoint(status_code=503)
    manager = _manager(credentials, endpoint)

    async def twice(m: TokenManager) -> AccessToken:
        with pytest.raises(DomainError):
            await m.get_valid_token()
        endpoint.status_code = 200
        return await m.get_valid_token()

    token = _run(manager, twice)

    assert token.access_token == "token-2"
    assert len(endpoint.calls) == 2


def test_missing_access_token_is_authentication_error(credentials: SpotifyCredentials) -> None:
    import httpx

    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda _request: httpx.Response(200, json={"token_type": "Bearer"}))
    )
    manager = TokenManager(credentials, client=client)

    with pytest.raises(DomainError) as exc:
        _run(manager, lambda m: m.get_valid_token())

    assert exc.value.code is ErrorCode.AUTHENTICATION
    assert manager.token is None


def test_session_token_uses_refresh_grant(credentials: SpotifyCredentials) -> None:
    endpoint = TokenEndpoint()
    expiring = AccessToken(
        access_token="user",
        expires_at=NOW + timedelta(minutes=4),
        refresh_token="refresh-me",
    )
    manager = _manager(credentials, endpoint, token=expiring)

    token = _run(manager, lambda m: m.get_valid_token())

    assert manager.safety_margin == SESSION_TOKEN_SAFETY_MARGIN
    assert endpoint.calls[0].content == b"grant_type=refresh_token&refresh_token=refresh-me"
    assert token.refresh_token == "refresh-me"


def test_rotated_refresh_token_replaces_previous(credentials: SpotifyCredentials) -> None:
    endpoint = TokenEndpoint(refresh_token="rotated")
    expired = AccessToken(
        access_token="user",
        expires_at=NOW - timedelta(minutes=1),
        refresh_token="old",
    )
    manager = _manager(credentials, endpoint, token=expired)

    token = _run(manager, lambda m: m.get_valid_token())

    assert token.refresh_token == "rotated"


def test_default_margin_for_client_credentials(credentials: SpotifyCredentials) -> None:
    manager = TokenManager(credentials)

    assert manager.safety_margin == CLIENT_TOKEN_SAFETY_MARGIN
    assert manager.token is None


def test_is_expired_honours_margin() -> None:
    token = AccessToken(access_token="t", expires_at=NOW + timedelta(seconds=90))

    assert not token.is_expired(timedelta(seconds=60), now=NOW)
    assert token.is_expired(timedelta(seconds=90), now=NOW)
    assert token.is_expired(timedelta(0), now=NOW + timedelta(seconds=91))


def test_access_token_is_hidden_from_repr() -> None:
    token = AccessToken(access_token="secret-value", expires_at=NOW, refresh_token="also-secret")

    assert "secret-value" not in repr(token)
    assert "also-secret" not in repr(token)


@pytest.mark.parametrize(
    ("client_id", "client_secret", "missing"),
    [("", "secret", "client_id"), ("id", "  ", "client_secret")],
)
def test_credentials_validate_fields(client_id: str, client_secret: str, missing: str) -> None:
    with pytest.raises(MissingConfigurationError) as exc:
        SpotifyCredentials(client_id=client_id, client_secret=client_secret)

    assert missing in str(exc.value)
    assert exc.value.names == (missing,)
