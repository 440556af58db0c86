"""Durable key/value storage for serialized credentials."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol


class CredentialStore(Protocol):
    """Minimal get/put/delete contract for a JSON-serializable value per key."""

    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def put(self, key: str, value: Dict[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...


class SQLiteCredentialStore:
    """Credential store backed by a single SQLite table keyed by name."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS credential_records (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM credential_records WHERE key = ?",
                (key,),
            ).fetchone()
        if not row:
            return None
        return json.loads(row["data"])

    def put(self, key: str, value: Dict[str, Any]) -> None:
        data_json = json.dumps(value)
        updated_at = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO credential_records (key, data, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (key, data_json, updated_at),
            )

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM credential_records WHERE key = ?", (key,))


class InMemoryCredentialStore:
    """Process-local store for tests and throwaway runs."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._items.get(key)
        return json.loads(raw) if raw is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        self._items[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._items.pop(key, None)


__all__ = ["CredentialStore", "InMemoryCredentialStore", "SQLiteCredentialStore"]
