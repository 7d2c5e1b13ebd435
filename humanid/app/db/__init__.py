from sqlalchemy.ext.asyncio import AsyncEngine

from humanid.app.core.logging import get_logger
from humanid.app.db.base import Base

logger = get_logger(__name__)


async def init_models(engine: AsyncEngine, drop: bool = False) -> None:
    """Create every table known to Base.metadata. ``drop`` resets first (dev only)."""
    # Registers the tables on Base.metadata
    from humanid.app import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            if drop:
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready")
    except Exception as e:
        logger.error(f"Could not create tables: {e}")
        raise
