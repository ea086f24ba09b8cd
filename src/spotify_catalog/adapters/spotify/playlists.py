"""Playlist lookups."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import quote

from spotify_catalog.errors import DomainError, ErrorCode, ErrorContext

from .base import BaseService
from .schema import PlaylistsPage, SpotifyPlaylist

PLAYLIST_REQUIRED_FIELDS = ("id", "name", "type", "uri")
PLAYLIST_ITEM_TYPES = frozenset({"track", "episode"})
MAX_PLAYLISTS_PER_PAGE = 50


class PlaylistService(BaseService):
    resource_type = "playlist"

    async def get_playlist(
        self,
        playlist_id: str,
        *,
        market: str | None = None,
        fields: str | None = None,
        additional_types: tuple[str, ...] | None = None,
    ) -> SpotifyPlaylist:
        self.ensure_id(playlist_id)
        params: dict[str, str] = {}
        if market is not None:
            params["market"] = self.ensure_market(market)
        if fields:
            params["fields"] = fields
        if additional_types:
            unknown = sorted(set(additional_types) - PLAYLIST_ITEM_TYPES)
            if unknown:
                raise self.invalid_param(
                    "additional_types",
                    ",".join(additional_types),
                    f"Invalid additional types parameter: {', '.join(unknown)}",
                )
            params["additional_types"] = ",".join(additional_types)

        payload = await self.get_resource(f"/playlists/{playlist_id}", playlist_id, params=params)
        return self._validate_playlist(payload, playlist_id)

    async def get_user_playlists(
        self,
        user_id: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> PlaylistsPage:
        """Playlists owned or followed by ``user_id``."""

        if limit is not None and not 1 <= limit <= MAX_PLAYLISTS_PER_PAGE:
            raise self.invalid_param(
                "limit", limit, f"Limit must be between 1 and {MAX_PLAYLISTS_PER_PAGE}"
            )
        if offset is not None and offset < 0:
            raise self.invalid_param("offset", offset, "Offset cannot be negative")

        payload = await self.request(
            "GET",
            f"/users/{quote(user_id, safe='')}/playlists",
            resource_id=f"user:{user_id}",
            params={"limit": limit, "offset": offset},
        )
        # offset and total are legitimately 0, so only href is checked for truthiness
        self.validate_required_fields(payload, ("href",), "paged-playlists")
        items = payload.get("items")
        if not isinstance(items, list):
            raise _invalid_page(user_id, "items must be a list")
        for item in items:
            if not isinstance(item, Mapping):
                raise _invalid_page(user_id, f"unexpected item {item!r}")
            self._validate_playlist(item, str(item.get("id") or "unknown"))
        return self.parse(PlaylistsPage, payload, resource_id=f"user:{user_id}")

    def _validate_playlist(self, payload: object, playlist_id: str) -> SpotifyPlaylist:
        self.validate_required_fields(payload, PLAYLIST_REQUIRED_FIELDS, self.resource_type)
        playlist = self.parse(SpotifyPlaylist, payload, resource_id=playlist_id)
        if playlist.type != "playlist":
            raise DomainError(
                f"Invalid item type in playlist response: {playlist.type}",
                code=ErrorCode.INVALID_RESPONSE,
                context=ErrorContext(
                    resource_type=self.resource_type,
                    resource_id=playlist_id,
                    extra={"received_type": playlist.type},
                ),
            )
        return playlist


def _invalid_page(user_id: str, reason: str) -> DomainError:
    return DomainError(
        f"Invalid paged-playlists response: {reason}",
        code=ErrorCode.INVALID_RESPONSE,
        context=ErrorContext(resource_type="paged-playlists", resource_id=f"user:{user_id}"),
    )
