"""Playlist API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user
from src.constants import CACHE_TTL_PLAYLIST, CACHE_TTL_PLAYLISTS
from src.db import get_db
from src.db.crud.playlist import (
    add_videos,
    delete_playlists,
    find_playlist_by_source,
    get_playlist,
    get_playlist_with_videos,
    get_playlist_yt_ids,
    get_playlists_with_progress,
    refresh_completion,
    reorder_videos,
    reset_playlist,
)
from src.db.crud.user import resolve_category
from src.db.crud.video import get_video_ids
from src.models.playlist import Playlist
from src.models.schemas import (
    AddVideoRequest,
    MessageResponse,
    PinToggleResponse,
    PlaylistCategoryUpdate,
    PlaylistCreate,
    PlaylistDetail,
    PlaylistProgress,
    PlaylistRead,
    PlaylistSyncResponse,
    ReorderRequest,
    VideoRead,
)
from src.models.user import User
from src.models.video import Video
from src.services.youtube import (
    YouTubeAPIError,
    extract_playlist_id,
    extract_video_id,
    import_playlist_videos,
    sync_playlist,
    youtube_client,
)
from src.utils.cache import (
    cache,
    invalidate_badge_cache,
    invalidate_playlist_cache,
    invalidate_user_cache,
    invalidate_video_cache,
    make_cache_key,
)

router = APIRouter()
logger = logging.getLogger(__name__)

YOUTUBE_ERROR = "Failed to fetch data from YouTube"


async def _get_owned_playlist(db: AsyncSession, playlist_id: int, user: User) -> Playlist:
    playlist = await get_playlist(db, playlist_id, user.id)
    if not playlist:
        raise HTTPException(status_code=404, detail="Playlist not found")
    return playlist


async def _playlist_detail(db: AsyncSession, playlist_id: int, user_id: int) -> dict[str, Any]:
    """Serialize a playlist with its videos and refresh the detail cache."""
    playlist = await get_playlist_with_videos(db, playlist_id, user_id)
    if not playlist:
        raise HTTPException(status_code=404, detail="Playlist not found")
    data = PlaylistDetail.model_validate(playlist).model_dump(mode="json")
    await cache.set(make_cache_key("playlist", playlist_id), data, ttl=CACHE_TTL_PLAYLIST)
    return data


@router.post("/add", response_model=PlaylistDetail, status_code=201)
async def create_playlist(
    data: PlaylistCreate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Create a custom playlist, or import one from YouTube."""
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Playlist name is required")

    yt_url = (data.yt_playlist_url or "").strip()
    yt_playlist_id = ""
    if not data.is_custom:
        if not yt_url:
            raise HTTPException(status_code=400, detail="YouTube playlist URL is required")
        yt_playlist_id = extract_playlist_id(yt_url) or ""
        if not yt_playlist_id:
            raise HTTPException(status_code=400, detail="Invalid YouTube playlist URL")
        if await find_playlist_by_source(db, user.id, yt_playlist_id, yt_url):
            raise HTTPException(status_code=400, detail="This playlist has already been added")

    contents = None
    if not data.is_custom:
        try:
            contents = await youtube_client.get_playlist_contents(yt_playlist_id)
        except YouTubeAPIError as e:
            logger.error(f"Import of YouTube playlist {yt_playlist_id} failed: {e}")
            raise HTTPException(status_code=500, detail=YOUTUBE_ERROR)

    categories_before = list(user.categories or [])
    playlist = Playlist(
        user_id=user.id,
        name=name,
        category=resolve_category(user, data.category),
        yt_playlist_url="" if data.is_custom else yt_url,
        yt_playlist_id=yt_playlist_id,
        is_custom=data.is_custom,
        completed=False,
    )
    db.add(playlist)
    await db.flush()

    if contents is not None:
        await import_playlist_videos(db, playlist, contents)

    await db.commit()
    source = "custom" if data.is_custom else yt_playlist_id
    logger.info(f"User {user.id} created playlist {playlist.id} ({source})")

    await invalidate_playlist_cache(user.id)
    if user.categories != categories_before:
        await invalidate_user_cache(user.id)
    return await _playlist_detail(db, playlist.id, user.id)


@router.get("/", response_model=list[PlaylistProgress])
async def list_playlists(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list:
    """List the user's playlists with progress, newest first."""
    key = make_cache_key("playlists", user.id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    items = []
    for entry in await get_playlists_with_progress(db, user.id):
        playlist = entry.pop("playlist")
        base = PlaylistRead.model_validate(playlist).model_dump()
        items.append(PlaylistProgress(**base, **entry).model_dump(mode="json"))

    await cache.set(key, items, ttl=CACHE_TTL_PLAYLISTS)
    return items


@router.get("/{playlist_id}", response_model=PlaylistDetail)
async def get_playlist_detail(
    playlist_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Get a playlist with its ordered videos."""
    await _get_owned_playlist(db, playlist_id, user)

    cached = await cache.get(make_cache_key("playlist", playlist_id))
    if cached is not None:
        return cached
    return await _playlist_detail(db, playlist_id, user.id)


@router.delete("/{playlist_id}", response_model=MessageResponse)
async def delete_playlist(
    playlist_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    """Delete a playlist with its videos, resources and completion badge."""
    playlist = await _get_owned_playlist(db, playlist_id, user)
    video_ids = await get_video_ids(db, playlist_id)

    await delete_playlists(db, user.id, [playlist])
    await db.commit()

    await invalidate_video_cache(user.id, playlist_id, *video_ids)
    await invalidate_badge_cache(user.id)
    return MessageResponse(message="Playlist deleted")


@router.post("/{playlist_id}/add-video", response_model=VideoRead, status_code=201)
async def add_video_to_playlist(
    playlist_id: int,
    data: AddVideoRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Video:
    """Add a YouTube video to a custom playlist."""
    playlist = await _get_owned_playlist(db, playlist_id, user)
    if not playlist.is_custom:
        raise HTTPException(status_code=400, detail="Videos can only be added to custom playlists")

    yt_id = extract_video_id(data.video_url)
    if not yt_id:
        raise HTTPException(status_code=400, detail="Invalid YouTube video URL")
    if yt_id in await get_playlist_yt_ids(db, playlist_id):
        raise HTTPException(status_code=400, detail="Video already exists in this playlist")

    try:
        item = await youtube_client.get_video(yt_id)
    except YouTubeAPIError as e:
        logger.error(f"Fetching video {yt_id} failed: {e}")
        raise HTTPException(status_code=500, detail=YOUTUBE_ERROR)
    if not item:
        raise HTTPException(status_code=404, detail="Video not found on YouTube")

    [video] = await add_videos(db, playlist, [item])
    await refresh_completion(db, playlist)
    await db.commit()

    await invalidate_playlist_cache(user.id, playlist_id)
    return video


@router.post("/{playlist_id}/sync", response_model=PlaylistSyncResponse)
async def sync_youtube_playlist(
    playlist_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PlaylistSyncResponse:
    """Pull videos added on YouTube since the import."""
    playlist = await _get_owned_playlist(db, playlist_id, user)
    if playlist.is_custom or not playlist.yt_playlist_id:
        raise HTTPException(status_code=400, detail="Only YouTube playlists can be synced")

    try:
        result = await sync_playlist(db, playlist)
    except YouTubeAPIError as e:
        logger.error(f"Sync of playlist {playlist_id} failed: {e}")
        raise HTTPException(status_code=500, detail=YOUTUBE_ERROR)

    await db.commit()
    await invalidate_playlist_cache(user.id, playlist_id)
    return PlaylistSyncResponse(
        added=result.added, skipped=result.skipped, total=result.total, message=result.message
    )


@router.post("/{playlist_id}/reset", response_model=MessageResponse)
async def reset_playlist_progress(
    playlist_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    """Reset watch progress of every video. Notes, tags and summaries are kept."""
    playlist = await _get_owned_playlist(db, playlist_id, user)
    count = await reset_playlist(db, playlist)
    await db.commit()

    await invalidate_video_cache(user.id, playlist_id, *await get_video_ids(db, playlist_id))
    return MessageResponse(message=f"Reset progress for {count} videos")


@router.patch("/{playlist_id}/category", response_model=PlaylistRead)
async def update_playlist_category(
    playlist_id: int,
    data: PlaylistCategoryUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Playlist:
    """Move a playlist to another category (unknown ones fall back to the default)."""
    playlist = await _get_owned_playlist(db, playlist_id, user)
    categories_before = list(user.categories or [])

    playlist.category = resolve_category(user, data.category)
    await db.commit()

    # Video details embed the playlist category
    await invalidate_video_cache(user.id, playlist_id, *await get_video_ids(db, playlist_id))
    if user.categories != categories_before:
        await invalidate_user_cache(user.id)
    return playlist


@router.patch("/{playlist_id}/reorder", response_model=PlaylistDetail)
async def reorder_playlist(
    playlist_id: int,
    data: ReorderRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Set new positions for videos of the playlist."""
    playlist = await _get_owned_playlist(db, playlist_id, user)

    unknown = await reorder_videos(
        db, playlist, [(item.id, item.position) for item in data.video_positions]
    )
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Videos {unknown} do not belong to this playlist",
        )

    await db.commit()
    await invalidate_playlist_cache(user.id, playlist_id)
    return await _playlist_detail(db, playlist_id, user.id)


@router.patch("/{playlist_id}/toggle-pin-video/{video_id}", response_model=PinToggleResponse)
async def toggle_pin_video(
    playlist_id: int,
    video_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PinToggleResponse:
    """Pin or unpin a video of the playlist."""
    await _get_owned_playlist(db, playlist_id, user)

    result = await db.execute(
        select(Video).where(Video.id == video_id, Video.playlist_id == playlist_id)
    )
    video = result.scalar_one_or_none()
    if not video:
        raise HTTPException(status_code=404, detail="Video not found in this playlist")

    video.pinned = not video.pinned
    await db.commit()

    await invalidate_video_cache(user.id, playlist_id, video_id)
    return PinToggleResponse(id=video.id, pinned=video.pinned)
