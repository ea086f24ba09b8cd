"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_int, optional_env_str, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .spotify import (
    DEFAULT_SPOTIFY_API_BASE,
    DEFAULT_SPOTIFY_TOKEN_ENDPOINT,
    SpotifyConfig,
    SpotifyCredentials,
    default_spotify_resilience,
    get_spotify_config,
)

__all__ = [
    "DEFAULT_SPOTIFY_API_BASE",
    "DEFAULT_SPOTIFY_TOKEN_ENDPOINT",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SpotifyConfig",
    "SpotifyCredentials",
    "configure_logging",
    "default_spotify_resilience",
    "get_spotify_config",
    "optional_env_int",
    "optional_env_str",
    "require_env_vars",
]
