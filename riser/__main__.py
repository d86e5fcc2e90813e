"""CLI entry point: python -m riser (serves the HTTP API)."""

from __future__ import annotations

import uvicorn

from riser.config import RiserConfig
from riser.observability.logging import setup_logging


def main() -> None:
    config = RiserConfig.from_yaml()
    setup_logging(config.log_level)

    uvicorn.run(
        "riser.app:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
