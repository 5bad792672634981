"""Main entry point for the Jingler API server."""

import logging

import uvicorn

from jingler.api.app import app
from jingler.config import get_settings


def main():
    """Run the Jingler API server."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
