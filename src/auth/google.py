"""Google sign-in: resolve a Google profile from the tokens the client sends."""

import logging
from urllib.parse import urlencode

from pydantic import ValidationError

from src.auth.models import GoogleUser
from src.config import get_settings
from src.utils.http_client import get_google_client

settings = get_settings()
logger = logging.getLogger(__name__)

# Google OAuth URLs
GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


class GoogleAuthError(Exception):
    """Google rejected the credential or returned an unusable profile."""


def _to_profile(data: dict) -> GoogleUser:
    try:
        return GoogleUser(
            id=str(data.get("sub") or data.get("id") or ""),
            email=data.get("email") or "",
            name=data.get("name"),
            picture=data.get("picture"),
            email_verified=data.get("email_verified") in (True, "true"),
        )
    except ValidationError as e:
        raise GoogleAuthError("Incomplete Google profile") from e


async def fetch_profile_from_access_token(access_token: str) -> GoogleUser:
    """Resolve an OAuth access token through the userinfo endpoint."""
    client = get_google_client()
    response = await client.get(
        GOOGLE_USERINFO_URL,
        headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
    )
    if response.status_code != 200:
        logger.warning(f"Google userinfo rejected token: {response.status_code}")
        raise GoogleAuthError("Invalid Google access token")

    profile = _to_profile(response.json())
    if not profile.id or not profile.email:
        raise GoogleAuthError("Incomplete Google profile")
    return profile


async def fetch_profile_from_id_token(id_token: str) -> GoogleUser:
    """Verify an ID token with the tokeninfo endpoint, checking its audience."""
    client = get_google_client()
    response = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
    if response.status_code != 200:
        logger.warning(f"Google tokeninfo rejected ID token: {response.status_code}")
        raise GoogleAuthError("Invalid Google ID token")

    data = response.json()
    if settings.google_client_id and data.get("aud") != settings.google_client_id:
        raise GoogleAuthError("ID token was issued for another client")

    profile = _to_profile(data)
    if not profile.id or not profile.email:
        raise GoogleAuthError("Incomplete Google profile")
    return profile


async def fetch_profile(access_token: str | None = None, credential: str | None = None) -> GoogleUser:
    """Resolve whichever credential the client sent (access token preferred)."""
    if access_token:
        return await fetch_profile_from_access_token(access_token)
    if credential:
        return await fetch_profile_from_id_token(credential)
    raise GoogleAuthError("No Google credential provided")


def build_authorize_url(state: str) -> str:
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": f"{settings.app_url}/api/auth/google/callback",
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "access_type": "online",
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"


async def exchange_code(code: str) -> GoogleUser:
    """Exchange an authorization code and resolve the resulting access token."""
    client = get_google_client()
    response = await client.post(
        GOOGLE_TOKEN_URL,
        data={
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "code": code,
            "redirect_uri": f"{settings.app_url}/api/auth/google/callback",
            "grant_type": "authorization_code",
        },
        headers={"Accept": "application/json"},
    )
    if response.status_code != 200:
        raise GoogleAuthError("Failed to get access token")

    token_result = response.json()
    if "error" in token_result:
        raise GoogleAuthError(token_result.get("error_description", "OAuth error"))

    access_token = token_result.get("access_token")
    if not access_token:
        raise GoogleAuthError("No access token received")
    return await fetch_profile_from_access_token(access_token)
