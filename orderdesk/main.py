"""
Console application entry point.

Configures logging, prepares the database and runs the interactive menu,
closing database connections on every exit path.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from orderdesk.core.config import get_settings
from orderdesk.core.logging import configure_logging, get_logger, log_performance
from orderdesk.database.connection import close_database_connections, initialize_database
from orderdesk.shell.menu import OrderDeskShell
from orderdesk.shell.prompts import Prompter

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan() -> AsyncIterator[None]:
    """
    Application lifespan for startup and shutdown.

    Yields:
        None while the menu is running
    """
    settings = get_settings()

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        version=settings.app_version,
    )

    with log_performance(logger, "application_startup"):
        await initialize_database()

    try:
        yield
    finally:
        logger.info("Application shutting down")
        with log_performance(logger, "application_shutdown"):
            await close_database_connections()


async def run(prompter: Optional[Prompter] = None) -> None:
    """Run the menu loop inside the application lifespan."""
    async with lifespan():
        await OrderDeskShell(prompter).run()


def main() -> None:
    """Console script entry point."""
    configure_logging()
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
