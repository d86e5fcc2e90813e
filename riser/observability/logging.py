"""Process-wide logging setup for the CLI and the HTTP service."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        force=True,
    )
    # Keep per-request client chatter out of INFO output
    logging.getLogger("httpx").setLevel(logging.WARNING)
