import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from cms_multilingual.config import settings

logger = logging.getLogger(__name__)


def engine_options(url: str, environment: str) -> dict[str, Any]:
    """Pool sizing per environment; SQLite keeps the driver defaults."""
    if url.startswith("sqlite"):
        return {"echo": settings.debug}
    if environment == "production":
        return {"pool_size": 20, "max_overflow": 50, "pool_timeout": 60, "pool_recycle": 1800, "pool_pre_ping": True}
    return {"echo": settings.debug, "pool_size": 10, "max_overflow": 20, "pool_timeout": 30}


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url, settings.environment))

# Services keep using rows after commit, so attributes must not expire.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; uncommitted work is rolled back on error."""
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            logger.warning("Rolling back database session after request error")
            await db.rollback()
            raise
