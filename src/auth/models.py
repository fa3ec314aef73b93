"""Authentication-related Pydantic models."""

from pydantic import BaseModel


class GoogleUser(BaseModel):
    """Google profile resolved from an access token or ID token."""

    id: str
    email: str
    name: str | None = None
    picture: str | None = None
    email_verified: bool | None = None


class TokenPayload(BaseModel):
    """Claims carried by an issued bearer token."""

    sub: int
    iat: int
    exp: int
