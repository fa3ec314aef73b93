"""Async engine and per-request sessions for the LearnLoop database."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.database_url_async,
    echo=settings.database_echo,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_pool_size * 2,
    pool_timeout=30,
    pool_recycle=1800,
)

# Objects stay usable for the response after a route commits
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Create missing tables. Schema changes go through alembic."""
    import src.models  # noqa: F401  registers every table on Base.metadata
    from src.models.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request.

    A route that raises before committing leaves nothing behind: the whole
    request is rolled back, including multi-step writes such as playlist
    deletion or a badge sync.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
