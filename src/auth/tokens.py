"""Bearer token issuing and verification (HS256 JWT via Authlib)."""

import time

from authlib.jose import JoseError, jwt
from pydantic import ValidationError

from src.auth.models import TokenPayload
from src.config import get_settings

settings = get_settings()


class InvalidTokenError(Exception):
    """Token is malformed, badly signed or expired."""


def create_access_token(user_id: int, now: int | None = None) -> str:
    """Issue a token for a user, valid for JWT_EXPIRE_DAYS."""
    issued_at = int(now if now is not None else time.time())
    payload = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + settings.jwt_expire_days * 24 * 60 * 60,
    }
    header = {"alg": settings.jwt_algorithm, "typ": "JWT"}
    token = jwt.encode(header, payload, settings.jwt_secret)
    return token.decode("utf-8")


def decode_access_token(token: str) -> TokenPayload:
    """Verify signature and expiry, returning the claims.

    Raises:
        InvalidTokenError: if the token cannot be trusted
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret)
        claims.validate(now=int(time.time()), leeway=0)
    except (JoseError, ValueError) as e:
        raise InvalidTokenError(str(e)) from e

    try:
        return TokenPayload.model_validate(dict(claims))
    except ValidationError as e:
        raise InvalidTokenError("Malformed token claims") from e
