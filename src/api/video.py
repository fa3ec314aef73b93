"""Video API endpoints: progress, notes, tags, resources and AI summaries."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user
from src.constants import CACHE_TTL_VIDEO, SEARCH_MIN_LENGTH
from src.db import get_db
from src.db.crud.badge import lock_user
from src.db.crud.playlist import refresh_completion
from src.db.crud.user import record_activity
from src.db.crud.video import (
    add_resource,
    add_tags,
    delete_resource,
    get_pinned_videos,
    get_video,
    remove_tags,
    remove_video,
    search_videos_by_notes,
    search_videos_by_tags,
)
from src.models.schemas import (
    BadgeRead,
    MessageResponse,
    PinnedVideo,
    ResourceCreate,
    TagsRequest,
    TagsResponse,
    VideoDetail,
    VideoNoteUpdate,
    VideoRead,
    VideoStatusResponse,
    VideoStatusUpdate,
    VideoSummaryUpdate,
    VideoTimeUpdate,
)
from src.models.user import User
from src.models.video import Video
from src.services.ai import (
    SummaryGenerationError,
    SummaryRateLimitError,
    TranscriptUnavailableError,
    generate_video_summary,
)
from src.services.badges import award_playlist_completion
from src.utils.cache import (
    cache,
    invalidate_badge_cache,
    invalidate_user_cache,
    invalidate_video_cache,
    make_cache_key,
)
from src.utils.chapters import parse_chapters

router = APIRouter()
logger = logging.getLogger(__name__)


async def _get_owned_video(db: AsyncSession, video_id: int, user: User) -> Video:
    """Load a video, 404 if missing and 403 if it belongs to someone else."""
    video = await get_video(db, video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    if video.playlist.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return video


async def _invalidate(user: User, video: Video) -> None:
    await invalidate_video_cache(user.id, video.playlist_id, video.id)


@router.get("/pinned", response_model=list[PinnedVideo])
async def list_pinned_videos(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[PinnedVideo]:
    """Pinned videos across all of the user's playlists."""
    return [
        PinnedVideo(**VideoRead.model_validate(video).model_dump(), playlist_name=playlist_name)
        for video, playlist_name in await get_pinned_videos(db, user.id)
    ]


@router.get("/search/tags", response_model=list[VideoRead])
async def search_by_tags(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    tags: Annotated[list[str], Query()] = [],
) -> list[Video]:
    """Videos carrying all of the given tags."""
    if not any(tag.strip() for tag in tags):
        raise HTTPException(status_code=400, detail="At least one tag is required")
    return await search_videos_by_tags(db, user.id, tags)


@router.get("/search/notes", response_model=list[VideoRead])
async def search_by_notes(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    query: Annotated[str, Query()] = "",
) -> list[Video]:
    """Case-insensitive search in video notes."""
    if len(query.strip()) < SEARCH_MIN_LENGTH:
        raise HTTPException(status_code=400, detail="Search query is required")
    return list(await search_videos_by_notes(db, user.id, query))


@router.get("/{video_id}", response_model=VideoDetail)
async def get_video_detail(
    video_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Video detail with resources, playlist context and chapters."""
    video = await _get_owned_video(db, video_id, user)

    key = make_cache_key("video", video_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    data = VideoDetail(
        **VideoRead.model_validate(video).model_dump(),
        playlist_name=video.playlist.name,
        playlist_category=video.playlist.category,
        chapters=parse_chapters(video.description),
    ).model_dump(mode="json")
    await cache.set(key, data, ttl=CACHE_TTL_VIDEO)
    return data


@router.patch("/{video_id}/status", response_model=VideoStatusResponse)
async def update_video_status(
    video_id: int,
    data: VideoStatusUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> VideoStatusResponse:
    """Change watch status, recompute playlist completion and award its badge."""
    video = await _get_owned_video(db, video_id, user)
    playlist = video.playlist

    # Status writes of one user serialize here so the completion count
    # below sees every committed sibling update
    await lock_user(db, user.id)
    video.status = data.status
    record_activity(user)
    completed = await refresh_completion(db, playlist)

    new_badges = []
    if completed:
        new_badges = await award_playlist_completion(db, user.id, playlist)
    await db.commit()

    await _invalidate(user, video)
    await invalidate_user_cache(user.id)
    if new_badges:
        await invalidate_badge_cache(user.id)
    return VideoStatusResponse(
        video=VideoRead.model_validate(video),
        playlist_completed=completed,
        new_badges=[BadgeRead.model_validate(b) for b in new_badges],
    )


@router.patch("/{video_id}/note", response_model=VideoRead)
async def update_video_note(
    video_id: int,
    data: VideoNoteUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Video:
    video = await _get_owned_video(db, video_id, user)
    video.notes = data.note
    await db.commit()
    await _invalidate(user, video)
    return video


@router.patch("/{video_id}/time", response_model=VideoRead)
async def update_video_time(
    video_id: int,
    data: VideoTimeUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Video:
    """Set minutes spent on a video."""
    video = await _get_owned_video(db, video_id, user)
    video.time_spent = data.time_spent
    record_activity(user)
    await db.commit()
    await _invalidate(user, video)
    await invalidate_user_cache(user.id)
    return video


@router.patch("/{video_id}/ai-summary", response_model=VideoRead)
async def update_video_summary(
    video_id: int,
    data: VideoSummaryUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Video:
    """Store a summary written or edited by the client."""
    summary = data.summary.strip()
    if not summary:
        raise HTTPException(status_code=400, detail="Summary is required")

    video = await _get_owned_video(db, video_id, user)
    video.ai_summary = summary
    video.ai_summary_generated = True
    await db.commit()
    await _invalidate(user, video)
    return video


@router.post("/{video_id}/summary-to-note", response_model=VideoRead)
async def copy_summary_to_note(
    video_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Video:
    """Append the AI summary to the video's notes."""
    video = await _get_owned_video(db, video_id, user)
    if not video.ai_summary:
        raise HTTPException(status_code=400, detail="No AI summary available for this video")

    block = f"AI Summary:\n{video.ai_summary}"
    video.notes = f"{video.notes}\n\n{block}" if video.notes else block
    await db.commit()
    await _invalidate(user, video)
    return video


@router.post("/{video_id}/generate-summary", response_model=VideoRead)
async def generate_summary(
    video_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Video:
    """Generate an AI summary from the video transcript."""
    video = await _get_owned_video(db, video_id, user)
    if video.ai_summary_generated:
        raise HTTPException(
            status_code=400,
            detail={
                "message": "Summary already exists for this video",
                "ai_summary": video.ai_summary,
            },
        )

    try:
        summary = await generate_video_summary(video.yt_id, video.title)
    except TranscriptUnavailableError:
        raise HTTPException(status_code=404, detail="No transcript available for this video")
    except SummaryRateLimitError:
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again later.")
    except SummaryGenerationError as e:
        logger.error(f"Summary generation failed for video {video_id}: {e}")
        raise HTTPException(status_code=500, detail="Error generating summary")

    video.ai_summary = summary
    video.ai_summary_generated = True
    await db.commit()
    await _invalidate(user, video)
    return video


@router.post("/{video_id}/tags", response_model=TagsResponse)
async def add_video_tags(
    video_id: int,
    data: TagsRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TagsResponse:
    """Add tags (trimmed, lowercased, deduplicated)."""
    video = await _get_owned_video(db, video_id, user)
    tags = add_tags(video, data.tags)
    await db.commit()
    await _invalidate(user, video)
    return TagsResponse(tags=tags)


@router.delete("/{video_id}/tags", response_model=TagsResponse)
async def remove_video_tags(
    video_id: int,
    data: TagsRequest,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TagsResponse:
    video = await _get_owned_video(db, video_id, user)
    tags = remove_tags(video, data.tags)
    await db.commit()
    await _invalidate(user, video)
    return TagsResponse(tags=tags)


@router.post("/{video_id}/resources", response_model=VideoRead, status_code=201)
async def add_video_resource(
    video_id: int,
    data: ResourceCreate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Video:
    """Attach a reference link to a video."""
    video = await _get_owned_video(db, video_id, user)
    await add_resource(db, video, data)
    await db.commit()
    await _invalidate(user, video)
    return video


@router.delete("/{video_id}/resources/{resource_id}", response_model=VideoRead)
async def delete_video_resource(
    video_id: int,
    resource_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Video:
    video = await _get_owned_video(db, video_id, user)
    if not await delete_resource(db, video, resource_id):
        raise HTTPException(status_code=404, detail="Resource not found")
    await db.commit()
    await _invalidate(user, video)
    return video


@router.delete("/{video_id}/remove-from-playlist", response_model=MessageResponse)
async def remove_video_from_playlist(
    video_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    """Remove a video from a custom playlist."""
    video = await _get_owned_video(db, video_id, user)
    playlist = video.playlist
    if not playlist.is_custom:
        raise HTTPException(
            status_code=400, detail="Videos can only be removed from custom playlists"
        )

    await lock_user(db, user.id)
    await remove_video(db, video)
    new_badges = []
    if await refresh_completion(db, playlist):
        new_badges = await award_playlist_completion(db, user.id, playlist)
    await db.commit()

    await invalidate_video_cache(user.id, playlist.id, video_id)
    if new_badges:
        await invalidate_badge_cache(user.id)
    return MessageResponse(message="Video removed from playlist")
