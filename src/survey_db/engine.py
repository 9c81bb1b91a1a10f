"""Process-wide async engine for the survey tables.

:func:`get_engine` builds the engine from :func:`load_db_settings` the
first time it is asked for one; :func:`dispose_engine` closes the pool and
forgets it, so the next call reads the environment again.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from survey_db.config import DatabaseSettings, load_db_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_engine(settings: DatabaseSettings) -> AsyncEngine:
    """Create an asyncpg engine with the pool settings in ``settings``."""
    return create_async_engine(
        settings.async_url,
        echo=settings.echo,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_recycle=settings.pool_recycle,
        pool_pre_ping=True,
    )


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = build_engine(load_db_settings())
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded attributes after commit; routes read them afterwards."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def dispose_engine() -> None:
    global _engine, _session_factory
    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()
