"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from functools import partial

os.environ.setdefault("APP_ENV", "test")

import pytest_asyncio
from fakeredis import FakeAsyncRedis, FakeServer
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.auth.dependencies import get_current_user
from src.db.database import get_db
from src.main import app
from src.models import Base, Playlist, User, Video, VideoStatus
from src.utils.cache import cache

# Test database URL (uses SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh in-memory database."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def redis_cache() -> AsyncGenerator[FakeAsyncRedis, None]:
    """Enable the app cache on an in-memory Redis for the duration of a test."""
    fake = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    cache._client = fake
    cache._connected = True

    yield fake

    cache._client = None
    cache._connected = False
    await fake.aclose()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user for authenticated tests."""
    user = User(
        name="Test User",
        email="test@example.com",
        google_id="google-12345",
        categories=["Programming"],
        daily_goal="",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Create another test user for isolation tests."""
    user = User(
        name="Other User",
        email="other@example.com",
        google_id="google-67890",
        categories=[],
        daily_goal="",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an unauthenticated test client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(
    db_session: AsyncSession, test_user: User
) -> AsyncGenerator[AsyncClient, None]:
    """Create an authenticated test client with a test user."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    def override_get_current_user() -> User:
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_playlist(
    db: AsyncSession,
    user: User,
    name: str = "Python Basics",
    video_count: int = 3,
    is_custom: bool = True,
    category: str = "Programming",
) -> Playlist:
    """Insert a playlist with `video_count` to-watch videos."""
    yt_playlist_id = "" if is_custom else "PL" + name.replace(" ", "")
    playlist = Playlist(
        user_id=user.id,
        name=name,
        category=category,
        is_custom=is_custom,
        yt_playlist_url=(
            "" if is_custom else f"https://www.youtube.com/playlist?list={yt_playlist_id}"
        ),
        yt_playlist_id=yt_playlist_id,
        completed=False,
    )
    db.add(playlist)
    await db.flush()
    for position in range(video_count):
        db.add(
            Video(
                playlist_id=playlist.id,
                yt_id=f"vid{playlist.id:03d}{position:05d}",
                title=f"{name} part {position + 1}",
                description="",
                status=VideoStatus.TO_WATCH,
                tags=[],
                position=position,
                resources=[],
            )
        )
    await db.commit()
    return playlist


@pytest_asyncio.fixture
async def make_playlist(db_session: AsyncSession) -> Callable[..., Awaitable[Playlist]]:
    """Factory inserting playlists: await make_playlist(user, name=..., video_count=...)."""
    return partial(_make_playlist, db_session)


@pytest_asyncio.fixture
async def playlist(db_session: AsyncSession, test_user: User) -> Playlist:
    """A custom playlist of the test user with three videos."""
    return await _make_playlist(db_session, test_user)


@pytest_asyncio.fixture
async def videos(db_session: AsyncSession, playlist: Playlist) -> list[Video]:
    """Videos of the `playlist` fixture in position order."""
    result = await db_session.execute(
        select(Video).where(Video.playlist_id == playlist.id).order_by(Video.position)
    )
    return list(result.scalars().all())
