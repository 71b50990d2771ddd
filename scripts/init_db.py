import argparse
import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import create_engine, init_models
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def init_database(database_url=None):
    logger.info("Connecting to document store...")
    engine = create_engine(database_url)
    try:
        await init_models(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create document store tables")
    parser.add_argument("--target", metavar="DATABASE_URL", help="Store database URL")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(init_database(args.target))
