"""Utility modules for the LearnLoop backend."""

from src.utils.cache import cache, make_cache_key
from src.utils.chapters import parse_chapters
from src.utils.logging import LogContext, get_logger, setup_logging
from src.utils.metrics import metrics

__all__ = [
    # Cache
    "cache",
    "make_cache_key",
    # Chapters
    "parse_chapters",
    # Logging
    "get_logger",
    "LogContext",
    "setup_logging",
    # Metrics
    "metrics",
]
