import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_engine_from_url(database_url: str, pool_size: int = 3, **kwargs) -> AsyncEngine:
    """Create the shared async engine.

    The pool is small and fixed: every interaction borrows one connection for
    the shortest span it needs and gives it back on every exit path.
    """
    if database_url.startswith("sqlite"):
        # SQLite pools do not take sizing arguments
        return create_async_engine(database_url, **kwargs)

    return create_async_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=0,
        pool_pre_ping=True,
        **kwargs,
    )


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory used as the `pool` handle by services and workflows."""
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_models(engine: AsyncEngine):
    """Create all tables (development and tests only, migrations live elsewhere)."""
    # Import models so they register on Base.metadata
    from . import api_session, server, team, user, vanity  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")

