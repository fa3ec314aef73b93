"""Main API router."""

from fastapi import APIRouter

from src.api.auth import router as auth_router
from src.api.badge import router as badge_router
from src.api.playlist import router as playlist_router
from src.api.user import router as user_router
from src.api.video import router as video_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(user_router, prefix="/user", tags=["user"])
api_router.include_router(playlist_router, prefix="/playlist", tags=["playlist"])
api_router.include_router(video_router, prefix="/video", tags=["video"])
api_router.include_router(badge_router, prefix="/badge", tags=["badge"])
