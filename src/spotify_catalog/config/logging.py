"""Root logger setup for the CLI and tests."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Send catalog log lines to stderr as ``time level [logger] message``.

    Handlers and format are installed once unless ``force`` is set. httpx is held at
    WARNING or above so that request lines come from the transport alone, with
    credentials redacted.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
