"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support. Engines are only built when the
"database" storage backend is selected.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from fleettrack.app.core.config import Settings

# Create declarative base for models
Base = declarative_base()


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create the async engine described by the application settings.

    Pool sizing only applies to server databases; SQLite uses its own pool.
    """
    url = make_url(settings.database_url)
    kwargs = {"echo": settings.db_echo}
    if not url.get_backend_name().startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the async session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables registered on ``Base``."""
    # Models must be imported so they register with Base.metadata
    from fleettrack.app.models import location_history, speed_violation, vehicle  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
