"""
Domain model for the persisted Spotify OAuth credential.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenResponseError(ValueError):
    """Raised when a token endpoint payload lacks required fields."""


class CredentialRecord(BaseModel):
    """Access/refresh token pair with the absolute instant the access token expires."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., repr=False)
    refresh_token: str = Field(..., repr=False)
    token_type: str = "Bearer"
    scope: frozenset[str] = Field(default_factory=frozenset)
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def from_token_response(
        cls,
        payload: Mapping[str, Any],
        *,
        received_at: datetime,
        refresh_token: Optional[str] = None,
    ) -> "CredentialRecord":
        """
        Build a record from a token endpoint response.

        ``expires_in`` is converted to an absolute instant relative to
        ``received_at``. ``refresh_token`` is used when the payload does not
        carry one, which is how refresh responses usually look.
        """
        access_token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        new_refresh_token = payload.get("refresh_token") or refresh_token

        if not access_token or expires_in is None:
            raise TokenResponseError("Token payload is missing access_token or expires_in.")
        if not new_refresh_token:
            raise TokenResponseError("Token payload is missing refresh_token.")

        return cls(
            access_token=access_token,
            refresh_token=new_refresh_token,
            token_type=payload.get("token_type") or "Bearer",
            scope=frozenset((payload.get("scope") or "").split()),
            expires_at=received_at + timedelta(seconds=int(expires_in)),
        )

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.access_token}"


__all__ = ["CredentialRecord", "TokenResponseError"]
