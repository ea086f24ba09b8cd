"""Spotify configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_int, optional_env_str, require_env_vars
from .errors import MissingConfigurationError
from .http_resilience import (
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    ResilienceConfig,
    RetryPolicy,
)

DEFAULT_SPOTIFY_TOKEN_ENDPOINT = "https://accounts.spotify.com/api/token"
DEFAULT_SPOTIFY_API_BASE = "https://api.spotify.com/v1"
DEFAULT_SPOTIFY_TIMEOUT_MS = int(DEFAULT_TIMEOUT_SECONDS * 1000)
DEFAULT_SPOTIFY_RETRY_DELAY_MS = 1000


@dataclass(frozen=True, slots=True)
class SpotifyCredentials:
    """Client credentials for the token endpoint, validated on construction."""

    client_id: str
    client_secret: str = field(repr=False)
    token_endpoint: str = DEFAULT_SPOTIFY_TOKEN_ENDPOINT

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("client_id", "client_secret", "token_endpoint")
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise MissingConfigurationError(
                f"Invalid auth configuration: missing fields: {', '.join(missing)}",
                names=missing,
            )


def default_spotify_resilience(
    *,
    base_url: str = DEFAULT_SPOTIFY_API_BASE,
    timeout_ms: int = DEFAULT_SPOTIFY_TIMEOUT_MS,
    retries: int = DEFAULT_RETRIES,
    retry_delay_ms: int = DEFAULT_SPOTIFY_RETRY_DELAY_MS,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="spotify",
        base_url=base_url,
        timeout_seconds=timeout_ms / 1000,
        retry=RetryPolicy(
            retries=retries,
            retry_delay=retry_delay_ms / 1000,
            max_delay=DEFAULT_MAX_DELAY_SECONDS,
        ),
        default_headers={"Accept": "application/json"},
    )


@dataclass(frozen=True, slots=True)
class SpotifyConfig:
    credentials: SpotifyCredentials
    resilience: ResilienceConfig = field(default_factory=default_spotify_resilience)


def get_spotify_config() -> SpotifyConfig:
    values = require_env_vars(("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET"))
    credentials = SpotifyCredentials(
        client_id=values["SPOTIFY_CLIENT_ID"],
        client_secret=values["SPOTIFY_CLIENT_SECRET"],
        token_endpoint=optional_env_str("SPOTIFY_TOKEN_ENDPOINT", DEFAULT_SPOTIFY_TOKEN_ENDPOINT),
    )
    resilience = default_spotify_resilience(
        base_url=optional_env_str("SPOTIFY_API_BASE", DEFAULT_SPOTIFY_API_BASE),
        timeout_ms=optional_env_int("SPOTIFY_TIMEOUT", DEFAULT_SPOTIFY_TIMEOUT_MS),
        retries=optional_env_int("SPOTIFY_RETRIES", DEFAULT_RETRIES),
        retry_delay_ms=optional_env_int("SPOTIFY_RETRY_DELAY", DEFAULT_SPOTIFY_RETRY_DELAY_MS),
    )
    return SpotifyConfig(credentials=credentials, resilience=resilience)
