"""Async SQLAlchemy database engine and session management."""

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from election_load.config import settings
from election_load.errors import StoreUnavailableError

logger = structlog.get_logger()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def check_db() -> bool:
    """Check database connectivity."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.warning("database_check_failed", exc_info=True)
        return False


async def ensure_db() -> None:
    """Raise ``StoreUnavailableError`` unless the database answers ``SELECT 1``."""
    if not await check_db():
        raise StoreUnavailableError(f"database unreachable at {engine.url.render_as_string()}")
    logger.info("database_reachable", url=engine.url.render_as_string())


async def dispose_db() -> None:
    await engine.dispose()
