"""Authentication API endpoints."""

import logging
import secrets
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user, google
from src.auth.google import GoogleAuthError
from src.auth.models import GoogleUser
from src.auth.tokens import create_access_token
from src.config import get_settings
from src.constants import CACHE_TTL_USER
from src.db import get_db
from src.db.crud.user import UnverifiedEmailError, get_or_create_google_user
from src.models.schemas import AuthResponse, GoogleAuthRequest, UserRead
from src.models.user import User
from src.utils.cache import cache, invalidate_user_cache, make_cache_key

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


async def _sign_in(db: AsyncSession, profile: GoogleUser) -> AuthResponse:
    """Find or create the user for a Google profile and issue a token."""
    user, created = await get_or_create_google_user(db, profile)
    await db.commit()
    if created:
        logger.info(f"Created user {user.id} from Google sign-in")

    await invalidate_user_cache(user.id)
    user_data = UserRead.model_validate(user)
    await cache.set(
        make_cache_key("user", user.id), user_data.model_dump(mode="json"), ttl=CACHE_TTL_USER
    )
    return AuthResponse(token=create_access_token(user.id), user=user_data)


@router.post("/google", response_model=AuthResponse)
async def google_sign_in(
    data: GoogleAuthRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthResponse:
    """Sign in with a Google access token or ID token (credential)."""
    if not data.access_token and not data.credential:
        raise HTTPException(status_code=400, detail="Google access token or credential required")

    try:
        profile = await google.fetch_profile(
            access_token=data.access_token, credential=data.credential
        )
    except GoogleAuthError as e:
        raise HTTPException(status_code=401, detail=str(e))

    try:
        return await _sign_in(db, profile)
    except UnverifiedEmailError:
        raise HTTPException(status_code=401, detail="Google email is not verified")


@router.get("/google/login")
async def google_login(request: Request) -> RedirectResponse:
    """Initiate server-side Google OAuth login."""
    if not settings.google_client_id:
        raise HTTPException(status_code=501, detail="Google OAuth not configured")

    state = secrets.token_urlsafe(32)
    request.session["oauth_state"] = state
    return RedirectResponse(url=google.build_authorize_url(state), status_code=302)


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: str,
    state: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RedirectResponse:
    """Handle Google OAuth callback and hand the token to the frontend."""
    # Verify state - if invalid, clear session and restart OAuth flow
    stored_state = request.session.get("oauth_state")
    if not stored_state or stored_state != state:
        request.session.clear()
        return RedirectResponse(url="/api/auth/google/login", status_code=302)

    del request.session["oauth_state"]

    try:
        profile = await google.exchange_code(code)
    except GoogleAuthError as e:
        logger.warning(f"Google OAuth callback failed: {e}")
        query = urlencode({"error": "google_auth_failed"})
        return RedirectResponse(url=f"{settings.frontend_url}/auth/callback?{query}", status_code=302)

    try:
        auth = await _sign_in(db, profile)
    except UnverifiedEmailError:
        query = urlencode({"error": "email_not_verified"})
        return RedirectResponse(url=f"{settings.frontend_url}/auth/callback?{query}", status_code=302)

    query = urlencode({"token": auth.token})
    return RedirectResponse(url=f"{settings.frontend_url}/auth/callback?{query}", status_code=302)


@router.get("/user", response_model=UserRead)
async def get_me(user: Annotated[User, Depends(get_current_user)]) -> dict:
    """Get current authenticated user."""
    key = make_cache_key("user", user.id)
    cached = await cache.get(key)
    if cached:
        return cached

    user_data = UserRead.model_validate(user).model_dump(mode="json")
    await cache.set(key, user_data, ttl=CACHE_TTL_USER)
    return user_data
