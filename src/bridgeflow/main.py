"""Main entry point - runs the read-only API."""

import logging

import uvicorn

from bridgeflow.api.app import create_app
from bridgeflow.config import get_settings

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main():
    """Run the FastAPI server."""
    settings = get_settings()
    configure_logging(settings.debug)

    logger.info("Starting Bridgeflow API...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Route: {settings.source_chain} -> {settings.destination_chain}")

    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
