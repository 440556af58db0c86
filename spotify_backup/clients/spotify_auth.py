"""
Spotify OAuth utilities.

These helpers build the consent redirect and talk to the accounts service
token endpoint for the authorization-code and refresh-token grants.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from spotify_backup.core.config import SpotifySettings


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 0,
        status_text: str = "",
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.body = body


class SpotifyOAuthClient:
    """Build Spotify authorization URLs and call the token endpoint."""

    def __init__(
        self,
        spotify_settings: SpotifySettings,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._spotify = spotify_settings
        self._timeout = timeout
        self._transport = transport

    @property
    def token_url(self) -> str:
        return f"{self._spotify.accounts_base_url.rstrip('/')}/api/token"

    @property
    def authorize_url(self) -> str:
        return f"{self._spotify.accounts_base_url.rstrip('/')}/authorize"

    def build_authorization_url(self) -> str:
        """Construct the Spotify consent URL."""
        params = {
            "client_id": self._spotify.client_id,
            "response_type": "code",
            "redirect_uri": str(self._spotify.redirect_uri),
            "scope": " ".join(self._spotify.scopes),
            "show_dialog": "false",
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code for the token endpoint's JSON payload."""
        return await self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": str(self._spotify.redirect_uri),
            },
            purpose="request access token",
        )

    async def refresh_token(self, refresh_token: str) -> Dict[str, Any]:
        """Refresh the access token; the payload may omit ``refresh_token``."""
        return await self._request_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            purpose="refresh access token",
        )

    async def _request_token(self, form: Dict[str, str], *, purpose: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                self.token_url,
                data=form,
                auth=(self._spotify.client_id, self._spotify.client_secret),
            )

        if not response.is_success:
            raise OAuthTokenExchangeError(
                f"failed to {purpose}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=response.text,
            )

        return response.json()


__all__ = ["OAuthTokenExchangeError", "SpotifyOAuthClient"]
