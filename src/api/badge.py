"""Badge API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user
from src.constants import CACHE_TTL_BADGES
from src.db import get_db
from src.db.crud.badge import get_user_badges, lock_user, remove_duplicate_badges
from src.models.schemas import (
    BadgeCheckResponse,
    BadgeCleanupResponse,
    BadgeDefinition,
    BadgeRead,
    BadgeSyncResponse,
    BadgeSyncStats,
)
from src.models.user import User
from src.services.badges import BADGE_CATALOG, check_all_badges, sync_badges
from src.utils.cache import cache, invalidate_badge_cache, make_cache_key

router = APIRouter()


async def _badge_list(db: AsyncSession, user_id: int) -> list[dict]:
    """Serialize the user's badges (newest first) and refresh the cache."""
    badges = [
        BadgeRead.model_validate(b).model_dump(mode="json")
        for b in await get_user_badges(db, user_id)
    ]
    await cache.set(make_cache_key("badges", user_id), badges, ttl=CACHE_TTL_BADGES)
    return badges


@router.get("/my-badges", response_model=list[BadgeRead])
async def my_badges(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list:
    """Badges earned by the user, most recent first."""
    cached = await cache.get(make_cache_key("badges", user.id))
    if cached is not None:
        return cached
    return await _badge_list(db, user.id)


@router.post("/check-badges", response_model=BadgeCheckResponse)
async def check_badges(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BadgeCheckResponse:
    """Evaluate every badge rule and report the badges just earned."""
    new_badges = await check_all_badges(db, user)
    await db.commit()
    await invalidate_badge_cache(user.id)

    if not new_badges:
        return BadgeCheckResponse(new_badges=[], message="No new badges earned")
    return BadgeCheckResponse(
        new_badges=[BadgeRead.model_validate(b) for b in new_badges],
        message="New badges earned! Check your collection.",
    )


@router.get("/all", response_model=list[BadgeDefinition])
async def all_badges(
    user: Annotated[User, Depends(get_current_user)],
) -> list[dict]:
    """Catalog of every badge that can be earned."""
    return BADGE_CATALOG


@router.post("/cleanup-duplicates", response_model=BadgeCleanupResponse)
async def cleanup_duplicates(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BadgeCleanupResponse:
    """Remove duplicate badges, keeping the most recent of each title."""
    await lock_user(db, user.id)
    removed = await remove_duplicate_badges(db, user.id)
    await db.commit()
    await invalidate_badge_cache(user.id)

    if not removed:
        return BadgeCleanupResponse(message="No duplicate badges found", removed_count=0)
    return BadgeCleanupResponse(
        message=f"Removed {removed} duplicate badge{'s' if removed != 1 else ''}",
        removed_count=removed,
    )


@router.post("/sync", response_model=BadgeSyncResponse)
async def sync_user_badges(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BadgeSyncResponse:
    """Repair badges against current playlists and grant any that are missing."""
    stats = await sync_badges(db, user)
    await db.commit()
    await invalidate_badge_cache(user.id)

    return BadgeSyncResponse(
        message="Badges synchronized",
        stats=BadgeSyncStats(**stats.to_dict()),
        badges=await _badge_list(db, user.id),
    )
