import asyncio
import logging

from sqlalchemy.ext.asyncio import create_async_engine
from leasetrack.database import Base
from leasetrack.config import DATABASE_URL, LOG_LEVEL
import leasetrack.models  # noqa: F401 - register Project, Property, ClientRequirement with Base.metadata

logger = logging.getLogger(__name__)


async def init_db():
    """Create the lease-tracker tables that do not exist yet."""
    engine = create_async_engine(DATABASE_URL, echo=False)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    asyncio.run(init_db())
