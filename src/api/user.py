"""User API endpoints: categories and daily goal."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user
from src.constants import CACHE_TTL_USER
from src.db import get_db
from src.db.crud.playlist import delete_playlists
from src.db.crud.user import (
    add_category,
    count_category_playlists,
    get_category_playlists,
    remove_category,
    rename_category,
)
from src.db.crud.video import get_video_ids
from src.models.schemas import (
    CategoriesResponse,
    CategoryCreate,
    CategoryDeleteResponse,
    CategoryRename,
    DailyGoal,
)
from src.models.user import User
from src.utils.cache import (
    cache,
    invalidate_badge_cache,
    invalidate_playlist_cache,
    invalidate_user_cache,
    invalidate_video_details,
    make_cache_key,
)

router = APIRouter()


@router.post("/category", response_model=CategoriesResponse)
async def create_category(
    data: CategoryCreate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CategoriesResponse:
    """Add a category to the user's list."""
    category = data.category.strip()
    if not category:
        raise HTTPException(status_code=400, detail="Category name is required")
    if category in (user.categories or []):
        raise HTTPException(status_code=400, detail="Category already exists")

    categories = add_category(user, category)
    await db.commit()
    await invalidate_user_cache(user.id)
    return CategoriesResponse(categories=categories)


@router.get("/categories", response_model=CategoriesResponse)
async def get_categories(
    user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """Get the user's categories."""
    key = make_cache_key("categories", user.id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    data = {"categories": list(user.categories or [])}
    await cache.set(key, data, ttl=CACHE_TTL_USER)
    return data


@router.put("/category", response_model=CategoriesResponse)
async def update_category(
    data: CategoryRename,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CategoriesResponse:
    """Rename a category, moving its playlists along."""
    old = data.old_category.strip()
    new = data.new_category.strip()
    categories = user.categories or []

    if not old or not new:
        raise HTTPException(status_code=400, detail="Both old and new category names are required")
    if old not in categories:
        raise HTTPException(status_code=400, detail="Category not found")
    if new in categories:
        raise HTTPException(status_code=400, detail="Category already exists")

    moved = [p.id for p in await get_category_playlists(db, user.id, old)]
    video_ids = await get_video_ids(db, *moved)
    categories = await rename_category(db, user, old, new)
    await db.commit()
    await invalidate_user_cache(user.id)
    await invalidate_playlist_cache(user.id, *moved)
    await invalidate_video_details(*video_ids)
    return CategoriesResponse(categories=categories)


@router.delete("/category/{category}", response_model=CategoryDeleteResponse)
async def delete_category(
    category: str,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    delete_associated_playlists: Annotated[bool, Query()] = False,
):
    """Delete a category.

    Playlists filed under it are deleted only when explicitly requested;
    otherwise the request is refused with the number of affected playlists.
    """
    if category not in (user.categories or []):
        raise HTTPException(status_code=400, detail="Category not found")

    count = await count_category_playlists(db, user.id, category)
    if count and not delete_associated_playlists:
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Category has playlists. Delete them too or move them first.",
                "has_playlists": True,
                "count": count,
            },
        )

    deleted = 0
    playlist_ids: list[int] = []
    video_ids: list[int] = []
    if count:
        playlists = await get_category_playlists(db, user.id, category)
        playlist_ids = [p.id for p in playlists]
        video_ids = await get_video_ids(db, *playlist_ids)
        deleted = await delete_playlists(db, user.id, playlists)

    categories = remove_category(user, category)
    await db.commit()

    await invalidate_user_cache(user.id)
    await invalidate_playlist_cache(user.id, *playlist_ids)
    await invalidate_video_details(*video_ids)
    if deleted:
        await invalidate_badge_cache(user.id)
    return CategoryDeleteResponse(categories=categories, deleted_playlists_count=deleted)


@router.post("/daily-goal", response_model=DailyGoal)
async def set_daily_goal(
    data: DailyGoal,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DailyGoal:
    """Set the user's free-text daily goal."""
    user.daily_goal = data.daily_goal.strip()
    await db.commit()
    await invalidate_user_cache(user.id)
    return DailyGoal(daily_goal=user.daily_goal)


@router.get("/daily-goal", response_model=DailyGoal)
async def get_daily_goal(
    user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """Get the user's daily goal."""
    key = make_cache_key("daily-goal", user.id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    data = {"daily_goal": user.daily_goal or ""}
    await cache.set(key, data, ttl=CACHE_TTL_USER)
    return data
