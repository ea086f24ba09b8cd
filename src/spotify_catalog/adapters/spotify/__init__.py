"""Spotify adapter package."""

from __future__ import annotations

from .auth import (
    CLIENT_TOKEN_SAFETY_MARGIN,
    SESSION_TOKEN_SAFETY_MARGIN,
    AccessToken,
    TokenManager,
    TokenProvider,
)
from .base import BaseService, validate_required_fields
from .markets import validate_market_code
from .playlists import PlaylistService
from .schema import (
    PlaylistsPage,
    SearchResponse,
    SpotifyAlbum,
    SpotifyArtist,
    SpotifyPlaylist,
    SpotifyTrack,
    TokenResponse,
)
from .search import SearchService, build_search_query
from .tracks import TrackService

__all__ = [
    "CLIENT_TOKEN_SAFETY_MARGIN",
    "SESSION_TOKEN_SAFETY_MARGIN",
    "AccessToken",
    "BaseService",
    "PlaylistService",
    "PlaylistsPage",
    "SearchResponse",
    "SearchService",
    "SpotifyAlbum",
    "SpotifyArtist",
    "SpotifyPlaylist",
    "SpotifyTrack",
    "TokenManager",
    "TokenProvider",
    "TokenResponse",
    "TrackService",
    "build_search_query",
    "validate_market_code",
    "validate_required_fields",
]
