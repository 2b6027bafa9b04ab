import asyncio
import logging

from scum_bot.config import get_settings
from scum_bot.db.connection import ConnectionPool
from scum_bot.db.repositories import CharacterRepository
from scum_bot.utils.log_context import configure_logging


async def main():
    """Create or migrate the character database and report what it holds."""
    settings = get_settings()
    configure_logging(settings.log_level_value)
    logger = logging.getLogger(__name__)

    async with ConnectionPool(
        settings.db.path,
        size=settings.db.pool_size,
        timeout=settings.db.pool_timeout,
    ) as pool:
        count = await CharacterRepository(pool).count()
        logger.info("Database %s ready with %d characters", settings.db.path, count)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.info("Bootstrap interrupted.")
