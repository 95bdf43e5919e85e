"""
Vigie relay entry point.

Usage:
    vigie-relay
    ENV=development python -m vigie.main
"""

import uvicorn

from vigie.config import get_settings
from vigie.presentation.app import create_app


def run() -> None:
    """Serve the relay with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run()
