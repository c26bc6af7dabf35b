"""Logging setup for processes embedding the engine."""

import logging


def setup_logging(level: str | int = logging.INFO) -> None:
    """Configure root logging with the engine's format."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("asyncio").setLevel(logging.WARNING)
