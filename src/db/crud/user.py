"""CRUD operations for users, categories and activity streaks."""

from datetime import date, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.models import GoogleUser
from src.constants import DEFAULT_CATEGORY
from src.models.base import utcnow
from src.models.playlist import Playlist
from src.models.user import User


class UnverifiedEmailError(Exception):
    """A Google profile claims an existing email without verifying it."""


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    """Get a user by primary key."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_google_user(db: AsyncSession, profile: GoogleUser) -> tuple[User, bool]:
    """Find the user for a Google profile, linking or creating as needed.

    Lookup order is google_id, then email (which links the Google account to
    the existing row, only when Google verified that email). The avatar is
    refreshed on every sign-in.

    Returns:
        (user, created)
    """
    result = await db.execute(select(User).where(User.google_id == profile.id))
    user = result.scalar_one_or_none()

    if not user and profile.email:
        result = await db.execute(select(User).where(User.email == profile.email))
        user = result.scalar_one_or_none()
        if user:
            if not profile.email_verified:
                raise UnverifiedEmailError(profile.email)
            user.google_id = profile.id

    if not user:
        user = User(
            google_id=profile.id,
            name=profile.name or profile.email.split("@")[0],
            email=profile.email,
            avatar_url=profile.picture,
            categories=[],
            daily_goal="",
        )
        db.add(user)
        await db.flush()
        return user, True

    if profile.picture:
        user.avatar_url = profile.picture
    if profile.name and not user.name:
        user.name = profile.name
    await db.flush()
    return user, False


def resolve_category(user: User, category: str | None) -> str:
    """Return the category a playlist should use.

    Unknown or empty categories fall back to the default one, which is added
    to the user's list when missing.
    """
    category = (category or "").strip()
    categories = list(user.categories or [])
    if category and category in categories:
        return category

    if DEFAULT_CATEGORY not in categories:
        user.categories = [*categories, DEFAULT_CATEGORY]
    return DEFAULT_CATEGORY


def add_category(user: User, category: str) -> list[str]:
    """Append a category. Caller checks it is non-empty and new."""
    user.categories = [*(user.categories or []), category]
    return user.categories


async def rename_category(db: AsyncSession, user: User, old: str, new: str) -> list[str]:
    """Rename a category on the user and on every playlist filed under it."""
    user.categories = [new if c == old else c for c in user.categories or []]
    await db.execute(
        update(Playlist)
        .where(Playlist.user_id == user.id, Playlist.category == old)
        .values(category=new, updated_at=utcnow())
    )
    await db.flush()
    return user.categories


async def get_category_playlists(db: AsyncSession, user_id: int, category: str) -> list[Playlist]:
    result = await db.execute(
        select(Playlist).where(Playlist.user_id == user_id, Playlist.category == category)
    )
    return list(result.scalars().all())


async def count_category_playlists(db: AsyncSession, user_id: int, category: str) -> int:
    result = await db.execute(
        select(func.count(Playlist.id)).where(
            Playlist.user_id == user_id, Playlist.category == category
        )
    )
    return result.scalar() or 0


def remove_category(user: User, category: str) -> list[str]:
    user.categories = [c for c in user.categories or [] if c != category]
    return user.categories


def record_activity(user: User, today: date | None = None) -> int:
    """Update the user's daily activity streak and return it.

    Activity on the same day leaves the streak unchanged, activity on the
    following day extends it, and any longer gap restarts it at 1.
    """
    today = today or utcnow().date()
    last = user.last_active_on

    if last == today:
        return user.current_streak
    if last is not None and last == today - timedelta(days=1):
        user.current_streak = (user.current_streak or 0) + 1
    else:
        user.current_streak = 1
    user.last_active_on = today
    return user.current_streak
