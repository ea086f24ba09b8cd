#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from spotify_catalog.adapters.spotify.search import SEARCH_TYPES
from spotify_catalog.app import build_catalog
from spotify_catalog.config import ConfigurationError, configure_logging
from spotify_catalog.errors import DomainError, to_normalized

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query the Spotify Web API catalog")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("token", help="Acquire an access token and report its expiry")

    track = subparsers.add_parser("track", help="Fetch a track by id")
    track.add_argument("track_id")
    track.add_argument("--market", help="ISO 3166-1 alpha-2 market code")

    playlist = subparsers.add_parser("playlist", help="Fetch a playlist by id")
    playlist.add_argument("playlist_id")
    playlist.add_argument("--market", help="ISO 3166-1 alpha-2 market code")

    search = subparsers.add_parser("search", help="Search the catalog")
    search.add_argument("query")
    search.add_argument(
        "--type",
        dest="types",
        action="append",
        choices=SEARCH_TYPES,
        help="Result type to include (repeatable, default: track)",
    )
    search.add_argument("--market", help="ISO 3166-1 alpha-2 market code")
    search.add_argument("--limit", type=int, help="Results per type (0-50)")

    return parser.parse_args(list(argv))


async def _run(args: argparse.Namespace) -> str:
    async with build_catalog() as catalog:
        if args.command == "token":
            token = await catalog.tokens.get_valid_token()
            return f"Access token valid until {token.expires_at.isoformat()}"
        if args.command == "track":
            track = await catalog.tracks.get_track(args.track_id, market=args.market)
            return track.model_dump_json(indent=2)
        if args.command == "playlist":
            playlist = await catalog.playlists.get_playlist(args.playlist_id, market=args.market)
            return playlist.model_dump_json(indent=2)
        if args.command == "search":
            result = await catalog.search.search(
                args.query,
                args.types or ["track"],
                market=args.market,
                limit=args.limit,
            )
            return result.model_dump_json(indent=2, exclude_none=True)
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    parsed_args = _parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        print(asyncio.run(_run(parsed_args)))
    except DomainError as exc:
        print(to_normalized(exc).model_dump_json(indent=2), file=sys.stderr)
        sys.exit(1)
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def cli() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    cli()
