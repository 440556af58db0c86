"""Symmetric encryption of credential secrets before they reach the store."""

from __future__ import annotations

import base64
import hashlib
from datetime import datetime
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken

from spotify_backup.models.credentials import CredentialRecord


class CredentialCipher:
    """Seal and open credential records using a Fernet key derived from a secret."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")

    def seal(self, record: CredentialRecord) -> Dict[str, Any]:
        """Return the JSON-ready stored form of ``record`` with secrets encrypted."""
        return {
            "access_token_encrypted": self.encrypt(record.access_token),
            "refresh_token_encrypted": self.encrypt(record.refresh_token),
            "token_type": record.token_type,
            "scope": sorted(record.scope),
            "expires_at": record.expires_at.isoformat(),
        }

    def open(self, payload: Dict[str, Any]) -> CredentialRecord:
        """Rebuild a record from its stored form.

        Raises ``ValueError`` when fields are missing or cannot be decrypted.
        """
        try:
            encrypted_access = payload["access_token_encrypted"]
            encrypted_refresh = payload["refresh_token_encrypted"]
            expires_at = datetime.fromisoformat(payload["expires_at"])
        except (KeyError, TypeError) as exc:
            raise ValueError("Stored credential is missing required fields.") from exc

        return CredentialRecord(
            access_token=self.decrypt(encrypted_access),
            refresh_token=self.decrypt(encrypted_refresh),
            token_type=payload.get("token_type") or "Bearer",
            scope=frozenset(payload.get("scope") or ()),
            expires_at=expires_at,
        )


__all__ = ["CredentialCipher"]
