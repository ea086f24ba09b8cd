from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from spotify_catalog.adapters.http_resilience import ResilientClient
from tests.support.spotify_api import (
    ApiRecorder,
    RecordingSleep,
    StaticToken,
    TokenEndpoint,
    make_credentials,
    make_resilience,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from spotify_catalog.config import SpotifyCredentials


@pytest.fixture
def credentials() -> SpotifyCredentials:
    return make_credentials()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def token_endpoint() -> TokenEndpoint:
    return TokenEndpoint()


@pytest.fixture
def static_token() -> StaticToken:
    return StaticToken()


@pytest.fixture
def make_client(
    fake_sleep: RecordingSleep,
    static_token: StaticToken,
) -> Callable[..., tuple[ResilientClient, ApiRecorder]]:
    """Build a transport around ``handler`` with a fixed token and no real sleeping."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        *,
        retries: int = 3,
    ) -> tuple[ResilientClient, ApiRecorder]:
        recorder = ApiRecorder(handler)
        client = ResilientClient(
            make_resilience(retries=retries),
            token_provider=static_token,
            transport=recorder.transport(),
            sleep=fake_sleep,
            jitter=lambda low, _high: low,
        )
        return client, recorder

    return factory
