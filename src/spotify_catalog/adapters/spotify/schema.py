"""Minimal Pydantic models for the Spotify accounts service and Web API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SpotifyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TokenResponse(SpotifyBaseModel):
    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: int = 3600
    refresh_token: str | None = None
    scope: str | None = None


class SpotifyArtist(SpotifyBaseModel):
    id: str
    name: str
    type: str = "artist"
    uri: str | None = None
    genres: list[str] = Field(default_factory=list)
    popularity: int | None = None


class SpotifyAlbum(SpotifyBaseModel):
    id: str
    name: str
    album_type: str | None = None
    release_date: str | None = None
    total_tracks: int | None = None
    artists: list[SpotifyArtist] = Field(default_factory=list["SpotifyArtist"])
    external_ids: dict[str, str] = Field(default_factory=dict)


class SpotifyTrack(SpotifyBaseModel):
    id: str
    name: str
    type: str
    uri: str
    duration_ms: int | None = None
    explicit: bool | None = None
    popularity: int | None = None
    is_playable: bool | None = None
    album: SpotifyAlbum | None = None
    artists: list[SpotifyArtist] = Field(default_factory=list["SpotifyArtist"])
    external_ids: dict[str, str] = Field(default_factory=dict)


class TracksResponse(SpotifyBaseModel):
    tracks: list[SpotifyTrack | None] = Field(default_factory=list)


class SpotifyPage(SpotifyBaseModel):
    href: str | None = None
    limit: int | None = None
    next: str | None = None
    offset: int | None = None
    previous: str | None = None
    total: int | None = None


class PlaylistOwner(SpotifyBaseModel):
    id: str
    display_name: str | None = None


class PlaylistTrackItem(SpotifyBaseModel):
    added_at: str | None = None
    track: SpotifyTrack | None = None


class PlaylistTracksPage(SpotifyPage):
    items: list[PlaylistTrackItem] = Field(default_factory=list["PlaylistTrackItem"])


class SpotifyPlaylist(SpotifyBaseModel):
    id: str
    name: str
    type: str
    uri: str
    description: str | None = None
    public: bool | None = None
    collaborative: bool | None = None
    snapshot_id: str | None = None
    owner: PlaylistOwner | None = None
    tracks: PlaylistTracksPage | None = None


class PlaylistsPage(SpotifyPage):
    items: list[SpotifyPlaylist] = Field(default_factory=list["SpotifyPlaylist"])


class TrackSearchPage(SpotifyPage):
    items: list[SpotifyTrack] = Field(default_factory=list["SpotifyTrack"])


class ArtistSearchPage(SpotifyPage):
    items: list[SpotifyArtist] = Field(default_factory=list["SpotifyArtist"])


class AlbumSearchPage(SpotifyPage):
    items: list[SpotifyAlbum] = Field(default_factory=list["SpotifyAlbum"])


class GenericSearchPage(SpotifyPage):
    # playlist, show, episode and audiobook results may contain null entries
    items: list[dict[str, Any] | None] = Field(default_factory=list)


class SearchResponse(SpotifyBaseModel):
    tracks: TrackSearchPage | None = None
    artists: ArtistSearchPage | None = None
    albums: AlbumSearchPage | None = None
    playlists: GenericSearchPage | None = None
    shows: GenericSearchPage | None = None
    episodes: GenericSearchPage | None = None
    audiobooks: GenericSearchPage | None = None
