"""Schemas related to OAuth flows."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AuthorizationUrlResponse(BaseModel):
    """Consent URL returned to API clients that do not follow redirects."""

    authorization_url: str = Field(..., description="Spotify consent screen URL.")


class CredentialStatus(BaseModel):
    """Whether a Spotify credential is stored and when its access token expires."""

    authenticated: bool
    expired: Optional[bool] = None
    expires_at: Optional[datetime] = None
    scope: list[str] = Field(default_factory=list)
    account: Optional[str] = Field(
        None, description="Connected account name; only filled when verification is requested."
    )


__all__ = ["AuthorizationUrlResponse", "CredentialStatus"]
