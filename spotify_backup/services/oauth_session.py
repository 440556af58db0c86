"""
Lifecycle of the Spotify OAuth credential: acquisition, expiry and refresh.

A session wraps one immutable ``CredentialRecord``. Refreshing never mutates
a session; ``ensure_fresh`` hands back either the same session or a new one
holding the refreshed record, which has already been persisted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from spotify_backup.clients.spotify_auth import OAuthTokenExchangeError, SpotifyOAuthClient
from spotify_backup.models.credentials import CredentialRecord, TokenResponseError
from spotify_backup.models.outcomes import RefreshFailure
from spotify_backup.services.credential_vault import CredentialVault

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OAuthSession:
    """Owns the current credential record and the refresh exchange."""

    def __init__(
        self,
        record: CredentialRecord,
        *,
        vault: CredentialVault,
        oauth_client: SpotifyOAuthClient,
        clock: Clock = utcnow,
        refresh_margin: timedelta = timedelta(0),
    ) -> None:
        self._record = record
        self._vault = vault
        self._oauth = oauth_client
        self._clock = clock
        self._refresh_margin = refresh_margin

    @property
    def record(self) -> CredentialRecord:
        return self._record

    @classmethod
    def load(
        cls,
        vault: CredentialVault,
        oauth_client: SpotifyOAuthClient,
        *,
        clock: Clock = utcnow,
        refresh_margin: timedelta = timedelta(0),
    ) -> Optional["OAuthSession"]:
        """Return the persisted session, or ``None`` when nobody has authenticated yet."""
        record = vault.load()
        if record is None:
            return None
        return cls(
            record,
            vault=vault,
            oauth_client=oauth_client,
            clock=clock,
            refresh_margin=refresh_margin,
        )

    @classmethod
    async def authorize(
        cls,
        code: str,
        vault: CredentialVault,
        oauth_client: SpotifyOAuthClient,
        *,
        clock: Clock = utcnow,
        refresh_margin: timedelta = timedelta(0),
    ) -> "OAuthSession":
        """Exchange an authorization code and persist the resulting credential.

        Raises ``OAuthTokenExchangeError`` when the exchange is rejected or the
        payload is incomplete.
        """
        payload = await oauth_client.exchange_authorization_code(code)
        try:
            record = CredentialRecord.from_token_response(payload, received_at=clock())
        except TokenResponseError as exc:
            raise OAuthTokenExchangeError(str(exc)) from exc

        session = cls(
            record,
            vault=vault,
            oauth_client=oauth_client,
            clock=clock,
            refresh_margin=refresh_margin,
        )
        session.persist()
        logger.info("Stored new Spotify credential (scope: %s)", " ".join(sorted(record.scope)))
        return session

    @staticmethod
    def forget(vault: CredentialVault) -> None:
        """Remove the stored credential so the next trigger sees no session."""
        vault.delete()

    def deauthorize(self) -> None:
        self.forget(self._vault)

    def is_expired(self) -> bool:
        return self._clock() >= self._record.expires_at - self._refresh_margin

    async def refresh(self) -> CredentialRecord | RefreshFailure:
        """Exchange the refresh token for a new record.

        A rejected refresh deletes the stored credential: the only way back is
        a new authorization-code flow.
        """
        try:
            payload = await self._oauth.refresh_token(self._record.refresh_token)
        except OAuthTokenExchangeError as exc:
            logger.error(
                "failed to refresh access token %s %s", exc.status_code, exc.status_text
            )
            self.forget(self._vault)
            return RefreshFailure(
                operation="refresh access token",
                status_code=exc.status_code,
                status_text=exc.status_text,
                body=exc.body,
            )

        try:
            return CredentialRecord.from_token_response(
                payload,
                received_at=self._clock(),
                refresh_token=self._record.refresh_token,
            )
        except TokenResponseError as exc:
            logger.error("Refresh response was incomplete: %s", exc)
            self.forget(self._vault)
            return RefreshFailure(
                operation="refresh access token",
                status_code=200,
                status_text="OK",
                body=str(exc),
            )

    def persist(self) -> None:
        """Write the current record to the store; storage errors propagate."""
        self._vault.save(self._record)

    def _replace(self, record: CredentialRecord) -> "OAuthSession":
        return OAuthSession(
            record,
            vault=self._vault,
            oauth_client=self._oauth,
            clock=self._clock,
            refresh_margin=self._refresh_margin,
        )

    async def ensure_fresh(self) -> OAuthSession | RefreshFailure:
        """Return a session whose access token is usable right now."""
        if not self.is_expired():
            return self

        logger.warning("oauth token expired")
        refreshed = await self.refresh()
        if isinstance(refreshed, RefreshFailure):
            return refreshed

        session = self._replace(refreshed)
        session.persist()
        logger.info("Refreshed Spotify access token; valid until %s", refreshed.expires_at.isoformat())
        return session


__all__ = ["Clock", "OAuthSession", "utcnow"]
