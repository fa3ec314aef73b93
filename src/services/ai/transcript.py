"""YouTube transcript retrieval.

yt-dlp finds the caption tracks of a video (uploaded subtitles first, then
automatic captions); the json3 track is downloaded and its segments joined
into plain text.
"""

import asyncio
import logging
from typing import Any

from src.constants import CACHE_TTL_TRANSCRIPT, TRANSCRIPT_LANGUAGES
from src.utils.cache import cache, make_cache_key
from src.utils.http_client import get_google_client

logger = logging.getLogger(__name__)


class TranscriptUnavailableError(Exception):
    """The video has no usable transcript."""


def _pick_caption_url(info: dict[str, Any]) -> str | None:
    """Choose a json3 caption track in a preferred language."""
    for source in ("subtitles", "automatic_captions"):
        tracks = info.get(source) or {}
        languages = [lang for lang in TRANSCRIPT_LANGUAGES if lang in tracks]
        languages += [lang for lang in tracks if lang.startswith("en") and lang not in languages]
        for lang in languages:
            for track in tracks[lang]:
                if track.get("ext") == "json3" and track.get("url"):
                    return track["url"]
    return None


def transcript_from_json3(data: dict[str, Any]) -> str:
    """Join the text segments of a json3 caption document."""
    parts = []
    for event in data.get("events", []):
        text = "".join(seg.get("utf8", "") for seg in event.get("segs") or [])
        text = " ".join(text.split())
        if text:
            parts.append(text)
    return " ".join(parts)


async def _find_caption_url(yt_id: str) -> str | None:
    """Run yt-dlp in a worker thread to list caption tracks."""
    import yt_dlp

    ydl_opts = {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "extract_flat": False,
    }

    def extract():
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            return ydl.extract_info(f"https://www.youtube.com/watch?v={yt_id}", download=False)

    try:
        info = await asyncio.to_thread(extract)
    except Exception as e:
        logger.warning(f"yt-dlp could not read {yt_id}: {e}")
        raise TranscriptUnavailableError("No transcript available for this video") from e

    return _pick_caption_url(info or {})


async def get_transcript(yt_id: str) -> str:
    """Transcript text of a video, cached for 7 days.

    Raises:
        TranscriptUnavailableError: if no caption track exists or it is empty
    """
    key = make_cache_key("transcript", yt_id)
    cached = await cache.get(key)
    if cached:
        return cached

    url = await _find_caption_url(yt_id)
    if not url:
        raise TranscriptUnavailableError("No transcript available for this video")

    client = get_google_client()
    try:
        response = await client.get(url)
        response.raise_for_status()
        text = transcript_from_json3(response.json())
    except Exception as e:
        logger.warning(f"Caption download failed for {yt_id}: {e}")
        raise TranscriptUnavailableError("No transcript available for this video") from e

    if not text:
        raise TranscriptUnavailableError("No transcript available for this video")

    await cache.set(key, text, ttl=CACHE_TTL_TRANSCRIPT)
    return text
