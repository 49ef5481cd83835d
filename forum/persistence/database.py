"""Engine and session factory for the reply store."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from forum.config import Settings

# Shows up in pg_stat_activity next to the push channel's LISTEN connection
APPLICATION_NAME = "forum-threads"


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for record fetches and writes.

    Args:
        settings: Application settings (database URL and pool sizing)

    Returns:
        Async engine backed by asyncpg
    """
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        connect_args={"server_settings": {"application_name": APPLICATION_NAME}},
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory.

    Objects are not expired on commit: repositories commit after every
    write and still read the same session afterwards.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
