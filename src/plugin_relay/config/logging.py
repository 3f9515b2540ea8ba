"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "PLUGINS_LOG_LEVEL"
LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "error": logging.ERROR,
}


def resolve_log_level(name: str | None = None) -> int:
    """Map a level name (or ``PLUGINS_LOG_LEVEL``) to a ``logging`` level.

    Unknown names fall back to INFO so a typo never silences error output.
    """

    candidate = name if name is not None else os.getenv(LOG_LEVEL_ENV, "info")
    return LOG_LEVELS.get(candidate.strip().lower(), logging.INFO)


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # httpx logs every request at INFO; keep that behind DEBUG.
    logging.getLogger("httpx").setLevel(level if level <= logging.DEBUG else logging.WARNING)
