"""Application constants - centralized configuration values."""

# =============================================================================
# Categories
# =============================================================================
DEFAULT_CATEGORY = "Uncategorized"

# =============================================================================
# Cache TTLs (in seconds)
# =============================================================================
CACHE_TTL_USER = 24 * 60 * 60  # 24 hours (profile, categories, daily goal)
CACHE_TTL_PLAYLISTS = 60 * 60  # 1 hour (list with progress)
CACHE_TTL_PLAYLIST = 30 * 60  # 30 minutes (detail)
CACHE_TTL_VIDEO = 60 * 60  # 1 hour
CACHE_TTL_BADGES = 60 * 60  # 1 hour
CACHE_TTL_YT_PLAYLIST = 24 * 60 * 60  # 24 hours
CACHE_TTL_TRANSCRIPT = 7 * 24 * 60 * 60  # 7 days
CACHE_TTL_SUMMARY = 30 * 24 * 60 * 60  # 30 days

# =============================================================================
# API Timeouts (in seconds)
# =============================================================================
API_TIMEOUT_EXTERNAL = 15.0
API_TIMEOUT_LONG = 30.0  # LLM completions

# =============================================================================
# YouTube
# =============================================================================
YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
YOUTUBE_PAGE_SIZE = 50  # API maximum for playlistItems and videos
YOUTUBE_MAX_PLAYLIST_ITEMS = 5000

# =============================================================================
# AI summaries
# =============================================================================
SUMMARY_MAX_TRANSCRIPT_CHARS = 12000
SUMMARY_MAX_TOKENS = 700
SUMMARY_TEMPERATURE = 0.5
TRANSCRIPT_LANGUAGES = ["en", "en-US", "en-GB"]

# =============================================================================
# Badges
# =============================================================================
STREAK_BADGE_DAYS = 7
COMPLETION_BADGE_PREFIX = "Completed: "

# =============================================================================
# Session & Security
# =============================================================================
SESSION_COOKIE_NAME = "learnloop_session"
SESSION_MAX_AGE_SECONDS = 10 * 60  # only holds the OAuth state
REQUEST_ID_HEADER = "X-Request-ID"

# =============================================================================
# Search
# =============================================================================
SEARCH_MIN_LENGTH = 1
MAX_SEARCH_RESULTS = 100
