"""Video summaries through an OpenAI-compatible chat completion API."""

import logging

from src.config import get_settings
from src.constants import (
    CACHE_TTL_SUMMARY,
    SUMMARY_MAX_TOKENS,
    SUMMARY_MAX_TRANSCRIPT_CHARS,
    SUMMARY_TEMPERATURE,
)
from src.services.ai.transcript import get_transcript
from src.utils.cache import cache, make_cache_key
from src.utils.http_client import get_llm_client
from src.utils.metrics import metrics

settings = get_settings()
logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that generates concise, informative summaries of "
    "educational videos. Focus on the key concepts, examples, and takeaways. Format your "
    "summary with bullet points for main topics followed by brief explanations. Keep your "
    "summary under 400 words."
)


class SummaryGenerationError(Exception):
    """The completion API failed or returned nothing usable."""


class SummaryRateLimitError(SummaryGenerationError):
    """The completion API answered 429."""


def truncate_transcript(transcript: str, max_chars: int = SUMMARY_MAX_TRANSCRIPT_CHARS) -> str:
    if len(transcript) > max_chars:
        return transcript[:max_chars] + "..."
    return transcript


async def summarize_transcript(transcript: str, title: str) -> str:
    """Ask the completion API for a bullet-point summary."""
    if not settings.openai_api_key:
        raise SummaryGenerationError("OPENAI_API_KEY is not configured")

    payload = {
        "model": settings.openai_model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f'Please summarize this transcript from a video titled "{title}":\n\n'
                    f"{truncate_transcript(transcript)}"
                ),
            },
        ],
        "max_tokens": SUMMARY_MAX_TOKENS,
        "temperature": SUMMARY_TEMPERATURE,
    }

    client = get_llm_client()
    try:
        response = await client.post(
            f"{settings.openai_base_url.rstrip('/')}/chat/completions",
            json=payload,
            headers={"Authorization": f"Bearer {settings.openai_api_key}"},
        )
    except Exception as e:
        metrics.summaries_generated_total.inc(outcome="error")
        raise SummaryGenerationError(f"Completion request failed: {e}") from e

    if response.status_code == 429:
        metrics.summaries_generated_total.inc(outcome="rate_limited")
        raise SummaryRateLimitError("Rate limit exceeded")
    if response.status_code != 200:
        metrics.summaries_generated_total.inc(outcome="error")
        raise SummaryGenerationError(
            f"Completion API returned {response.status_code}: {response.text[:200]}"
        )

    try:
        content = response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        metrics.summaries_generated_total.inc(outcome="error")
        raise SummaryGenerationError("Unexpected completion response") from e

    summary = (content or "").strip()
    if not summary:
        metrics.summaries_generated_total.inc(outcome="error")
        raise SummaryGenerationError("Empty summary")

    metrics.summaries_generated_total.inc(outcome="success")
    return summary


async def generate_video_summary(yt_id: str, title: str) -> str:
    """Summary for a YouTube video, cached per video for 30 days.

    Raises:
        TranscriptUnavailableError: no transcript to summarize
        SummaryRateLimitError: provider rate limit
        SummaryGenerationError: any other provider failure
    """
    key = make_cache_key("summary", yt_id)
    cached = await cache.get(key)
    if cached:
        return cached

    transcript = await get_transcript(yt_id)
    summary = await summarize_transcript(transcript, title)
    await cache.set(key, summary, ttl=CACHE_TTL_SUMMARY)
    logger.info(f"Generated summary for {yt_id} ({len(summary)} chars)")
    return summary
