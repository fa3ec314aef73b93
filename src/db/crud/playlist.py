"""CRUD operations for playlists and their videos."""

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import Integer, case, cast, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.constants import COMPLETION_BADGE_PREFIX
from src.models.badge import Badge
from src.models.playlist import Playlist
from src.models.video import Video, VideoResource, VideoStatus


async def get_playlist(
    db: AsyncSession,
    playlist_id: int,
    user_id: int,
) -> Playlist | None:
    """Get a single playlist by ID with user isolation."""
    result = await db.execute(
        select(Playlist).where(Playlist.id == playlist_id, Playlist.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_playlist_with_videos(
    db: AsyncSession,
    playlist_id: int,
    user_id: int,
) -> Playlist | None:
    """Get a playlist with its videos (ordered by position) and their resources."""
    await db.flush()
    result = await db.execute(
        select(Playlist)
        .options(selectinload(Playlist.videos))
        .where(Playlist.id == playlist_id, Playlist.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_playlist_by_source(
    db: AsyncSession,
    user_id: int,
    yt_playlist_id: str,
    yt_playlist_url: str,
) -> Playlist | None:
    """Find a YouTube playlist the user already imported (same id or same URL)."""
    result = await db.execute(
        select(Playlist).where(
            Playlist.user_id == user_id,
            Playlist.is_custom.is_(False),
            (Playlist.yt_playlist_id == yt_playlist_id)
            | (Playlist.yt_playlist_url == yt_playlist_url),
        )
    )
    return result.scalars().first()


async def get_playlists_with_progress(db: AsyncSession, user_id: int) -> list[dict[str, Any]]:
    """List the user's playlists with aggregated video progress, newest first."""
    result = await db.execute(
        select(
            Playlist,
            func.count(Video.id).label("total"),
            func.coalesce(
                func.sum(cast(Video.status == VideoStatus.COMPLETED, Integer)), 0
            ).label("completed"),
            func.coalesce(
                func.sum(cast(Video.status == VideoStatus.IN_PROGRESS, Integer)), 0
            ).label("in_progress"),
            func.coalesce(func.sum(Video.time_spent), 0).label("time_spent"),
            func.coalesce(
                func.sum(case((func.length(Video.notes) > 0, 1), else_=0)), 0
            ).label("notes"),
        )
        .outerjoin(Video, Video.playlist_id == Playlist.id)
        .where(Playlist.user_id == user_id)
        .group_by(Playlist.id)
        .order_by(Playlist.created_at.desc(), Playlist.id.desc())
    )

    playlists = []
    for playlist, total, completed, in_progress, time_spent, notes in result.all():
        playlists.append({
            "playlist": playlist,
            "total_videos": total,
            "completed_videos": completed,
            "in_progress_videos": in_progress,
            "progress": round(completed / total * 100) if total else 0,
            "total_time_spent": time_spent,
            "notes_count": notes,
        })
    return playlists


def build_video(playlist_id: int, item: dict[str, Any], position: int) -> Video:
    """Create a Video row from a normalized YouTube video dict."""
    return Video(
        playlist_id=playlist_id,
        yt_id=item["yt_id"],
        title=item.get("title") or "Untitled video",
        description=item.get("description") or "",
        thumbnail=item.get("thumbnail") or "",
        duration=item.get("duration") or "",
        view_count=item.get("view_count") or 0,
        like_count=item.get("like_count") or 0,
        published_at=item.get("published_at") or "",
        channel_title=item.get("channel_title") or "",
        status=VideoStatus.TO_WATCH,
        time_spent=0,
        notes="",
        ai_summary="",
        ai_summary_generated=False,
        tags=[],
        pinned=False,
        position=position,
        resources=[],
    )


async def add_videos(
    db: AsyncSession,
    playlist: Playlist,
    items: Iterable[dict[str, Any]],
) -> list[Video]:
    """Append videos after the playlist's current last position."""
    position = await get_next_position(db, playlist.id)
    videos = []
    for item in items:
        video = build_video(playlist.id, item, position)
        db.add(video)
        videos.append(video)
        position += 1
    await db.flush()
    return videos


async def get_next_position(db: AsyncSession, playlist_id: int) -> int:
    await db.flush()
    result = await db.execute(
        select(func.max(Video.position)).where(Video.playlist_id == playlist_id)
    )
    last = result.scalar()
    return 0 if last is None else last + 1


async def get_playlist_yt_ids(db: AsyncSession, playlist_id: int) -> set[str]:
    result = await db.execute(select(Video.yt_id).where(Video.playlist_id == playlist_id))
    return {row[0] for row in result.all()}


async def refresh_completion(db: AsyncSession, playlist: Playlist) -> bool:
    """Recompute the completed flag: at least one video, all of them completed."""
    await db.flush()
    result = await db.execute(
        select(
            func.count(Video.id),
            func.coalesce(func.sum(cast(Video.status == VideoStatus.COMPLETED, Integer)), 0),
        ).where(Video.playlist_id == playlist.id)
    )
    total, completed = result.one()
    playlist.completed = total > 0 and completed == total
    await db.flush()
    return playlist.completed


async def reset_playlist(db: AsyncSession, playlist: Playlist) -> int:
    """Put every video back to to-watch with no time spent. Notes, tags and summaries stay."""
    result = await db.execute(select(Video).where(Video.playlist_id == playlist.id))
    videos = result.scalars().all()
    for video in videos:
        video.status = VideoStatus.TO_WATCH
        video.time_spent = 0
    playlist.completed = False
    await db.flush()
    return len(videos)


async def reorder_videos(
    db: AsyncSession,
    playlist: Playlist,
    positions: Sequence[tuple[int, int]],
) -> list[int]:
    """Apply (video_id, position) pairs.

    Returns:
        Ids that do not belong to the playlist (nothing is changed then)
    """
    result = await db.execute(select(Video).where(Video.playlist_id == playlist.id))
    videos = {video.id: video for video in result.scalars().all()}

    unknown = [video_id for video_id, _ in positions if video_id not in videos]
    if unknown:
        return unknown

    for video_id, position in positions:
        videos[video_id].position = position
    await db.flush()
    return []


async def delete_playlists(db: AsyncSession, user_id: int, playlists: Sequence[Playlist]) -> int:
    """Delete playlists with their videos, resources and completion badges."""
    if not playlists:
        return 0

    await db.flush()
    playlist_ids = [p.id for p in playlists]
    names = {p.name for p in playlists}

    # Names still carried by a surviving completed playlist keep their badge
    result = await db.execute(
        select(Playlist.name).where(
            Playlist.user_id == user_id,
            Playlist.id.notin_(playlist_ids),
            Playlist.completed.is_(True),
            Playlist.name.in_(sorted(names)),
        )
    )
    names -= {row[0] for row in result.all()}

    video_ids = select(Video.id).where(Video.playlist_id.in_(playlist_ids))
    await db.execute(delete(VideoResource).where(VideoResource.video_id.in_(video_ids)))
    await db.execute(delete(Video).where(Video.playlist_id.in_(playlist_ids)))
    if names:
        await db.execute(
            delete(Badge)
            .where(
                Badge.user_id == user_id,
                Badge.title.in_([f"{COMPLETION_BADGE_PREFIX}{name}" for name in sorted(names)]),
            )
        )
    await db.execute(delete(Playlist).where(Playlist.id.in_(playlist_ids)))
    await db.flush()
    return len(playlist_ids)
