"""Command line entry point: prepare the database and probe the generative backend."""
import asyncio
import logging
import sys

from google.api_core import exceptions as google_exceptions

from linguaquiz.config import settings
from linguaquiz.errors import LinguaQuizError
from linguaquiz.logging_config import setup_logging
from linguaquiz.monitoring import start_monitoring
from linguaquiz.models.base import init_db
from linguaquiz.services.generation_client import get_generation_client

logger = logging.getLogger("linguaquiz")


async def main() -> int:
    """Initialize storage and check that the backend answers."""
    init_db()
    logger.info("Database initialized")

    if settings.monitoring.port:
        start_monitoring(settings.monitoring.port)
        logger.info(f"Metrics exported on port {settings.monitoring.port}")

    try:
        client = get_generation_client()
    except ValueError as e:
        logger.error(f"Cannot create generation client: {e}")
        return 1

    try:
        healthy = await client.check_health()
    except (LinguaQuizError, google_exceptions.GoogleAPIError, ValueError) as e:
        logger.error(f"Generative backend health check failed: {e}")
        return 1

    if not healthy:
        logger.error("Generative backend returned an empty response")
        return 1
    logger.info("Generative backend is healthy")
    return 0


if __name__ == "__main__":
    setup_logging("Starting linguaquiz ...")
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
