"""Track lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from spotify_catalog.errors import DomainError, ErrorCode, ErrorContext

from .base import BaseService
from .schema import SpotifyTrack, TracksResponse

if TYPE_CHECKING:
    from collections.abc import Sequence

TRACK_REQUIRED_FIELDS = ("id", "name", "type", "uri")
TRACK_TYPES = frozenset({"track", "episode"})
MAX_TRACKS_PER_REQUEST = 50


class TrackService(BaseService):
    resource_type = "track"

    async def get_track(self, track_id: str, *, market: str | None = None) -> SpotifyTrack:
        """Fetch one track; id and market are checked before any request is made."""

        self.ensure_id(track_id)
        params: dict[str, str] = {}
        if market is not None:
            params["market"] = self.ensure_market(market)

        payload = await self.get_resource(f"/tracks/{track_id}", track_id, params=params)
        return self._validate_track(payload, track_id)

    async def get_tracks(
        self,
        track_ids: Sequence[str],
        *,
        market: str | None = None,
    ) -> list[SpotifyTrack | None]:
        if not 1 <= len(track_ids) <= MAX_TRACKS_PER_REQUEST:
            raise self.invalid_param(
                "ids",
                len(track_ids),
                f"Between 1 and {MAX_TRACKS_PER_REQUEST} track ids are required",
            )
        for track_id in track_ids:
            self.ensure_id(track_id)
        params = {"ids": ",".join(track_ids)}
        if market is not None:
            params["market"] = self.ensure_market(market)

        payload = await self.request("GET", "/tracks", params=params)
        self.validate_required_fields(payload, ("tracks",), "tracks")
        response = self.parse(TracksResponse, payload)
        return response.tracks

    def _validate_track(self, payload: object, track_id: str) -> SpotifyTrack:
        self.validate_required_fields(payload, TRACK_REQUIRED_FIELDS, self.resource_type)
        track = self.parse(SpotifyTrack, payload, resource_id=track_id)
        if track.type not in TRACK_TYPES:
            raise DomainError(
                f"Invalid response: not a track ({track.type})",
                code=ErrorCode.INVALID_RESPONSE,
                context=ErrorContext(
                    resource_type=self.resource_type,
                    resource_id=track_id,
                    extra={"received_type": track.type},
                ),
            )
        return track
