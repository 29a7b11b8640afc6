"""
Entry point: `python -m haiku_notes`.

Loads settings from the environment (and .env), builds the app and serves it
with uvicorn. Invalid configuration is logged and the process exits with
status 1.
"""

import logging
import sys

import uvicorn

from haiku_notes.config import load_settings
from haiku_notes.exceptions import ConfigurationError
from haiku_notes.main import create_app, setup_logging

logger = logging.getLogger("haiku_notes")


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging()
        logger.error("%s", e.message)
        sys.exit(1)

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
