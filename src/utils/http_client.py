"""Shared persistent httpx clients for external API calls.

Using persistent clients avoids creating a new TCP connection + TLS handshake
for every API call, improving performance through connection reuse and pooling.
"""

import httpx

from src.constants import API_TIMEOUT_EXTERNAL, API_TIMEOUT_LONG

# Connection pool limits
_POOL_LIMITS = httpx.Limits(
    max_connections=20,
    max_keepalive_connections=10,
    keepalive_expiry=30,
)

# Shared clients for different service groups
_google_client: httpx.AsyncClient | None = None
_llm_client: httpx.AsyncClient | None = None


def get_google_client() -> httpx.AsyncClient:
    """Get persistent httpx client for Google APIs (YouTube Data, OAuth, captions)."""
    global _google_client
    if _google_client is None:
        _google_client = httpx.AsyncClient(
            timeout=API_TIMEOUT_EXTERNAL,
            limits=_POOL_LIMITS,
            http2=False,
        )
    return _google_client


def get_llm_client() -> httpx.AsyncClient:
    """Get persistent httpx client for chat completion calls (slow responses)."""
    global _llm_client
    if _llm_client is None:
        _llm_client = httpx.AsyncClient(
            timeout=API_TIMEOUT_LONG,
            limits=_POOL_LIMITS,
            http2=False,
        )
    return _llm_client


async def close_all_clients() -> None:
    """Close all persistent httpx clients. Call during app shutdown."""
    global _google_client, _llm_client
    if _google_client is not None:
        await _google_client.aclose()
        _google_client = None
    if _llm_client is not None:
        await _llm_client.aclose()
        _llm_client = None
