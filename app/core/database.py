"""
Async database setup using SQLModel with aiosqlite.
"""

from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from typing import Any, AsyncGenerator, Dict
from app.models import *

from app.core.config import get_settings

settings = get_settings()


def engine_options(database_url: str) -> Dict[str, Any]:
    """Driver-specific engine options."""
    if database_url.startswith("sqlite"):
        # Writers queue on the database lock instead of failing fast
        return {"connect_args": {"timeout": settings.sqlite_busy_timeout}}
    return {"pool_pre_ping": True}


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **engine_options(settings.database_url)
)


AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession
)


async def create_tables(bind: AsyncEngine) -> None:
    """Create all tables on the given engine."""
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def init_db() -> None:
    """Initialize database tables."""
    await create_tables(engine)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with AsyncSessionLocal() as session:
        yield session
