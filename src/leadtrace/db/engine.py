"""Async database engine and session factory."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from leadtrace.config import get_settings

_engine = None


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """Build an async engine, adding the SQLite threading flag when needed."""
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_async_engine(url, echo=echo, connect_args=connect_args)


def get_engine() -> AsyncEngine:
    """Create or return the cached application engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine_for(
            settings.database_url,
            echo=(settings.environment == "development"),
        )
    return _engine


def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to ``engine``."""
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create all snapshot tables if they do not exist."""
    from leadtrace.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Dispose of the cached engine. Called on app shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
