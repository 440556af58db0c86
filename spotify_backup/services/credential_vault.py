"""
Binds the credential store to the single fixed key used by this service.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from spotify_backup.clients.credential_store import CredentialStore
from spotify_backup.models.credentials import CredentialRecord
from spotify_backup.services.credential_cipher import CredentialCipher

logger = logging.getLogger(__name__)

SPOTIFY_TOKEN_KEY = "spotify-token"


class CredentialVault:
    """Load, save and delete the one stored Spotify credential."""

    def __init__(
        self,
        store: CredentialStore,
        cipher: CredentialCipher,
        *,
        key: str = SPOTIFY_TOKEN_KEY,
    ) -> None:
        self._store = store
        self._cipher = cipher
        self._key = key

    def load(self) -> Optional[CredentialRecord]:
        payload = self._store.get(self._key)
        if payload is None:
            return None
        try:
            return self._cipher.open(payload)
        except ValueError:
            # Undecodable records come from an older layout or a rotated secret.
            logger.warning("Stored credential could not be decoded; treating as absent.")
            return None

    def save(self, record: CredentialRecord) -> None:
        payload = self._cipher.seal(record)
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        self._store.put(self._key, payload)

    def delete(self) -> None:
        self._store.delete(self._key)


__all__ = ["CredentialVault", "SPOTIFY_TOKEN_KEY"]
