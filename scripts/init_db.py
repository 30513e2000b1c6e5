"""
Create the registry schema and seed reference data (states, taxonomies)
"""

import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import engine
from core.logging import setup_logging
from models import Base
from models.seed import seed_reference_data
from ingestion.pipeline import install_helper_functions

logger = logging.getLogger(__name__)


async def init_database():
    logger.info("Connecting to database...")

    async with engine.begin() as conn:
        logger.info("Creating tables...")
        await conn.run_sync(Base.metadata.create_all)
        await install_helper_functions(conn)
        await seed_reference_data(conn)
        logger.info("Tables created and reference data seeded.")

    await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database())
