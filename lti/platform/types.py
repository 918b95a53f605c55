"""Type definitions for platform registration and access tokens."""

from typing import Any

from pydantic import BaseModel, Field


class PlatformRegistration(BaseModel):
    """Inputs supplied once when a platform is registered."""

    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    auth_endpoint: str = Field(min_length=1)
    accesstoken_endpoint: str = Field(min_length=1)
    auth_method: str
    auth_key: str


class CachedAccessToken(BaseModel):
    """Last token minted for a platform, as held by the store."""

    token: str
    expires_in: int
    created_at: int


class IssuedToken(BaseModel):
    """Token endpoint response from a client-credentials exchange."""

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: int = 3600
    scope: str | None = None


class UpdateResult(BaseModel):
    """Outcome of a platform setter; falsy when the write failed."""

    ok: bool
    platform: Any = None
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.ok
