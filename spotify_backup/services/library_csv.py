"""Canonical CSV rendering of the saved-tracks library."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence

from spotify_backup.models.library import LibraryEntry

HEADER = ("added at", "release date", "name", "album", "artist(s)", "id")
ARTIST_DELIMITER = "+"
TRACK_URI_PREFIX = "spotify:track:"


def format_timestamp(value: datetime) -> str:
    """Second-precision UTC timestamp with an explicit ``+00:00`` suffix."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + "+00:00"


def _quote(field: str) -> str:
    if "," in field or '"' in field:
        return '"' + field.replace('"', '""') + '"'
    return field


def csv_row(fields: Iterable[str]) -> str:
    """Join ``fields`` into one newline-terminated row.

    Only fields containing a comma or a double quote are quoted.
    """
    return ",".join(_quote(field) for field in fields) + "\n"


def entry_fields(entry: LibraryEntry) -> tuple[str, ...]:
    return (
        format_timestamp(entry.added_at),
        entry.release_date,
        entry.track_name,
        entry.album_name,
        ARTIST_DELIMITER.join(entry.artists),
        f"{TRACK_URI_PREFIX}{entry.track_id}",
    )


def serialize(entries: Sequence[LibraryEntry]) -> str:
    """Render already-ordered entries; identical input yields identical text."""
    return csv_row(HEADER) + "".join(csv_row(entry_fields(entry)) for entry in entries)


__all__ = ["HEADER", "csv_row", "entry_fields", "format_timestamp", "serialize"]
