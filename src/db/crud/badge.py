"""CRUD operations for badges."""

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.badge import Badge
from src.models.user import User


async def lock_user(db: AsyncSession, user_id: int) -> None:
    """Take the user's row lock for the rest of the transaction.

    Badge awards for one user serialize on this lock, so the existence check
    and the insert in award_badge cannot interleave with another request.
    """
    await db.execute(select(User.id).where(User.id == user_id).with_for_update())


async def get_user_badges(db: AsyncSession, user_id: int) -> Sequence[Badge]:
    """Badges of a user, most recently earned first."""
    await db.flush()
    result = await db.execute(
        select(Badge)
        .where(Badge.user_id == user_id)
        .order_by(Badge.earned_at.desc(), Badge.id.desc())
    )
    return result.scalars().all()


async def get_badge_titles(db: AsyncSession, user_id: int) -> set[str]:
    await db.flush()
    result = await db.execute(select(Badge.title).where(Badge.user_id == user_id))
    return {row[0] for row in result.all()}


async def award_badge(
    db: AsyncSession,
    user_id: int,
    title: str,
    description: str,
    icon: str,
) -> Badge | None:
    """Insert a badge unless the user already holds one with this title.

    Call with the user's row lock held (see lock_user).

    Returns:
        The new badge, or None if it already existed
    """
    await db.flush()
    result = await db.execute(
        select(Badge.id).where(Badge.user_id == user_id, Badge.title == title).limit(1)
    )
    if result.first() is not None:
        return None

    badge = Badge(user_id=user_id, title=title, description=description, icon=icon)
    db.add(badge)
    await db.flush()
    return badge


async def remove_duplicate_badges(db: AsyncSession, user_id: int) -> int:
    """Keep only the most recently earned badge for each title.

    Returns:
        Number of rows removed
    """
    await db.flush()
    result = await db.execute(
        select(Badge.id, Badge.title)
        .where(Badge.user_id == user_id)
        .order_by(Badge.earned_at.desc(), Badge.id.desc())
    )

    seen: set[str] = set()
    duplicate_ids: list[int] = []
    for badge_id, title in result.all():
        if title in seen:
            duplicate_ids.append(badge_id)
        else:
            seen.add(title)

    if duplicate_ids:
        await db.execute(delete(Badge).where(Badge.id.in_(duplicate_ids)))
        await db.flush()
    return len(duplicate_ids)


async def delete_badges_by_title(db: AsyncSession, user_id: int, titles: Sequence[str]) -> int:
    if not titles:
        return 0
    result = await db.execute(
        select(Badge.id).where(Badge.user_id == user_id, Badge.title.in_(list(titles)))
    )
    ids = [row[0] for row in result.all()]
    if ids:
        await db.execute(delete(Badge).where(Badge.id.in_(ids)))
        await db.flush()
    return len(ids)
