"""AI summary services: transcript retrieval and chat-completion summaries."""

from src.services.ai.summary import (
    SummaryGenerationError,
    SummaryRateLimitError,
    generate_video_summary,
)
from src.services.ai.transcript import TranscriptUnavailableError, get_transcript

__all__ = [
    "SummaryGenerationError",
    "SummaryRateLimitError",
    "TranscriptUnavailableError",
    "generate_video_summary",
    "get_transcript",
]
