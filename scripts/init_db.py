import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_engine_for, init_schema, mask_url

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init_database():
    logger.info(f"Connecting to database {mask_url(settings.DATABASE_URL)}...")
    engine = create_engine_for(settings.DATABASE_URL)

    try:
        logger.info("Creating tables...")
        applied = await init_schema(engine)
        logger.info(f"Tables created successfully ({len(applied)} schema entries applied).")
    finally:
        await engine.dispose()


def main():
    asyncio.run(init_database())


if __name__ == "__main__":
    main()
