"""Catalog search."""

from __future__ import annotations

from typing import TYPE_CHECKING

from spotify_catalog.errors import DomainError, ErrorCode, ErrorContext

from .base import BaseService
from .schema import SearchResponse

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

SEARCH_TYPES = ("album", "artist", "playlist", "track", "show", "episode", "audiobook")
MAX_SEARCH_LIMIT = 50
MAX_SEARCH_OFFSET = 1000

# field filter -> result types it can narrow
FILTER_TYPES: dict[str, frozenset[str]] = {
    "artist": frozenset({"album", "artist", "track"}),
    "year": frozenset({"album", "artist", "track"}),
    "album": frozenset({"album", "track"}),
    "genre": frozenset({"artist", "track"}),
    "track": frozenset({"track"}),
    "isrc": frozenset({"track"}),
    "upc": frozenset({"album"}),
    "tag": frozenset({"album"}),
}
TAG_VALUES = frozenset({"hipster", "new"})


def build_search_query(
    query: str,
    types: Sequence[str],
    filters: Mapping[str, str | int] | None = None,
) -> str:
    """Append the field filters that apply to at least one of ``types``."""

    parts = [query.strip()]
    for name, value in (filters or {}).items():
        if value in (None, ""):
            continue
        allowed = FILTER_TYPES.get(name)
        if allowed is None or allowed.isdisjoint(types):
            continue
        if name == "tag" and value not in TAG_VALUES:
            continue
        parts.append(f"{name}:{value}")
    return " ".join(parts).strip()


class SearchService(BaseService):
    resource_type = "search"

    async def search(
        self,
        query: str,
        types: Sequence[str],
        *,
        filters: Mapping[str, str | int] | None = None,
        market: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> SearchResponse:
        self._validate(query, types, limit, offset)
        params: dict[str, str | int | None] = {
            "q": build_search_query(query, types, filters),
            "type": ",".join(types),
            "limit": limit,
            "offset": offset,
        }
        if market is not None:
            params["market"] = self.ensure_market(market)

        payload = await self.request("GET", "/search", resource_id=query, params=params)
        self.validate_required_fields(payload, [f"{kind}s" for kind in types], self.resource_type)
        return self.parse(SearchResponse, payload, resource_id=query)

    def _validate(
        self,
        query: str,
        types: Sequence[str],
        limit: int | None,
        offset: int | None,
    ) -> None:
        if not query or not query.strip():
            raise self._invalid_request("Search query cannot be empty")
        if not types:
            raise self._invalid_request("At least one search type must be specified")
        unknown = [kind for kind in types if kind not in SEARCH_TYPES]
        if unknown:
            raise self._invalid_request(f"Invalid search types: {', '.join(unknown)}")
        if limit is not None and not 0 <= limit <= MAX_SEARCH_LIMIT:
            raise self.invalid_param(
                "limit", limit, f"Limit must be between 0 and {MAX_SEARCH_LIMIT}"
            )
        if offset is not None and not 0 <= offset <= MAX_SEARCH_OFFSET:
            raise self.invalid_param(
                "offset", offset, f"Offset must be between 0 and {MAX_SEARCH_OFFSET}"
            )

    def _invalid_request(self, message: str) -> DomainError:
        return DomainError(
            message,
            code=ErrorCode.VALIDATION,
            status_code=400,
            context=ErrorContext(resource_type=self.resource_type),
        )
