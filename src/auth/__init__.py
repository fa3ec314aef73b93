"""Authentication module."""

from src.auth import google
from src.auth.dependencies import get_current_user
from src.auth.tokens import create_access_token, decode_access_token

__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "google",
]
