from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from spotify_backup.clients.credential_store import (
    InMemoryCredentialStore,
    SQLiteCredentialStore,
)
from spotify_backup.models.credentials import CredentialRecord
from spotify_backup.services.credential_cipher import CredentialCipher
from spotify_backup.services.credential_vault import SPOTIFY_TOKEN_KEY, CredentialVault


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path: Path):
    if request.param == "sqlite":
        return SQLiteCredentialStore(str(tmp_path / "nested" / "credentials.db"))
    return InMemoryCredentialStore()


def test_store_get_put_delete(store) -> None:
    assert store.get("spotify-token") is None

    store.put("spotify-token", {"value": 1})
    store.put("spotify-token", {"value": 2})
    assert store.get("spotify-token") == {"value": 2}

    store.delete("spotify-token")
    assert store.get("spotify-token") is None


def test_sqlite_store_survives_reopen(tmp_path: Path) -> None:
    db_path = str(tmp_path / "credentials.db")
    SQLiteCredentialStore(db_path).put("spotify-token", {"value": "kept"})

    assert SQLiteCredentialStore(db_path).get("spotify-token") == {"value": "kept"}


def test_vault_round_trips_record_under_fixed_key(store) -> None:
    vault = CredentialVault(store, CredentialCipher(secret="vault-secret"))
    record = CredentialRecord(
        access_token="access",
        refresh_token="refresh",
        scope=frozenset({"user-library-read"}),
        expires_at=datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc),
    )

    vault.save(record)

    stored = store.get(SPOTIFY_TOKEN_KEY)
    assert stored is not None
    assert stored["access_token_encrypted"] != "access"
    assert "updated_at" in stored
    assert vault.load() == record

    vault.delete()
    assert vault.load() is None


def test_vault_treats_undecodable_record_as_absent(store) -> None:
    store.put(SPOTIFY_TOKEN_KEY, {"access_token": "legacy", "refresh_token": "legacy"})
    vault = CredentialVault(store, CredentialCipher(secret="vault-secret"))

    assert vault.load() is None
