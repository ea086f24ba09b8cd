"""Application composition root."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from spotify_catalog.adapters.http_resilience import ResilientClient
from spotify_catalog.adapters.spotify import (
    PlaylistService,
    SearchService,
    TokenManager,
    TrackService,
)
from spotify_catalog.config import SpotifyConfig, get_spotify_config

if TYPE_CHECKING:
    from types import TracebackType

    import httpx

    from spotify_catalog.adapters.http_resilience import Sleep

log = getLogger(__name__)


@dataclass(slots=True)
class SpotifyCatalog:
    """One token manager shared by one transport and the services built on it."""

    tokens: TokenManager
    http: ResilientClient
    tracks: TrackService
    playlists: PlaylistService
    search: SearchService

    async def __aenter__(self) -> SpotifyCatalog:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()
        await self.tokens.aclose()


def build_catalog(
    config: SpotifyConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    token_client: httpx.AsyncClient | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SpotifyCatalog:
    """Wire the catalog from ``config`` (environment when omitted)."""

    effective = config or get_spotify_config()
    tokens = TokenManager(
        effective.credentials,
        client=token_client,
        timeout_seconds=effective.resilience.timeout_seconds,
    )
    http = ResilientClient(
        effective.resilience,
        token_provider=tokens,
        transport=transport,
        sleep=sleep,
    )
    log.debug(
        "Built Spotify catalog client: base_url=%s, retries=%s",
        effective.resilience.base_url,
        effective.resilience.retry.retries,
    )
    return SpotifyCatalog(
        tokens=tokens,
        http=http,
        tracks=TrackService(http=http),
        playlists=PlaylistService(http=http),
        search=SearchService(http=http),
    )
