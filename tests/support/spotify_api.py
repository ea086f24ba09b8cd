"""In-memory stand-ins for the Spotify accounts service and Web API."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from spotify_catalog.adapters.spotify.auth import AccessToken
from spotify_catalog.config import ResilienceConfig, RetryPolicy, SpotifyConfig, SpotifyCredentials

TOKEN_URL = "https://accounts.test/api/token"
API_BASE = "https://api.test/v1"
TRACK_ID = "4uLU6hMCjMI75M1A2tKUQC"
PLAYLIST_ID = "37i9dQZF1DXcBWIGoYBM5M"

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingSleep:
    """Replacement for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@dataclass
class TokenEndpoint:
    expires_in: int = 3600
    status_code: int = 200
    latency: float = 0.0
    refresh_token: str | None = None
    calls: list[httpx.Request] = field(default_factory=list)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.status_code != 200:
            return httpx.Response(
                self.status_code,
                json={"error": "invalid_client", "error_description": "Invalid client secret"},
            )
        body: dict[str, Any] = {
            "access_token": f"token-{len(self.calls)}",
            "token_type": "Bearer",
            "expires_in": self.expires_in,
        }
        if self.refresh_token is not None:
            body["refresh_token"] = self.refresh_token
        return httpx.Response(200, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@dataclass
class StaticToken:
    """Token provider that never talks to the network."""

    access_token: str = "static-token"
    calls: int = 0

    async def get_valid_token(self) -> AccessToken:
        self.calls += 1
        return AccessToken(
            access_token=self.access_token,
            expires_at=datetime.now(UTC) + timedelta(hours=1),
        )


@dataclass
class ApiRecorder:
    """Wraps a synchronous handler and keeps every request it saw."""

    handler: Handler
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def make_credentials() -> SpotifyCredentials:
    return SpotifyCredentials(
        client_id="client-id",
        client_secret="client-secret",  # noqa: S106
        token_endpoint=TOKEN_URL,
    )


def make_resilience(*, retries: int = 3, retry_delay: float = 1.0, max_delay: float = 10.0) -> ResilienceConfig:
    return ResilienceConfig(
        name="spotify-test",
        base_url=API_BASE,
        timeout_seconds=5.0,
        retry=RetryPolicy(retries=retries, retry_delay=retry_delay, max_delay=max_delay),
    )


def make_config(*, retries: int = 3) -> SpotifyConfig:
    return SpotifyConfig(credentials=make_credentials(), resilience=make_resilience(retries=retries))


def spotify_error(status: int, message: str, **headers: str) -> httpx.Response:
    return httpx.Response(
        status,
        json={"error": {"status": status, "message": message}},
        headers=headers,
    )


def track_payload(track_id: str = TRACK_ID, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": track_id,
        "name": "Never Gonna Give You Up",
        "type": "track",
        "uri": f"spotify:track:{track_id}",
        "duration_ms": 213573,
        "album": {"id": "6XhjNHCyCDyyGJRM5mg40G", "name": "Whenever You Need Somebody"},
        "artists": [{"id": "0gxyHStUsqpMadRV0Di1Qt", "name": "Rick Astley"}],
        "external_ids": {"isrc": "GBARL9300135"},
    }
    payload.update(overrides)
    return payload


def playlist_payload(playlist_id: str = PLAYLIST_ID, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": playlist_id,
        "name": "Today's Top Hits",
        "type": "playlist",
        "uri": f"spotify:playlist:{playlist_id}",
        "owner": {"id": "spotify", "display_name": "Spotify"},
        "tracks": {
            "href": f"{API_BASE}/playlists/{playlist_id}/tracks",
            "total": 1,
            "items": [{"added_at": "2024-01-01T00:00:00Z", "track": track_payload()}],
        },
    }
    payload.update(overrides)
    return payload
