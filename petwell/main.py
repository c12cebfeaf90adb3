"""
Main entry point for the PetWell staff directory.
"""

import uvicorn

from petwell.api.app import create_app
from petwell.core.config import get_settings
from petwell.core.logging import get_logger

logger = get_logger(__name__)


def main():
    """Main entry point."""
    settings = get_settings()

    logger.info(
        "Starting PetWell staff directory",
        environment=settings.environment,
        debug=settings.debug,
    )

    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        access_log=False,  # We use our own logging
    )


if __name__ == "__main__":
    main()
