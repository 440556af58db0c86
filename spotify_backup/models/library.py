"""
Models describing the user's saved tracks as returned by the library endpoint.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, field_validator


class LibraryEntry(BaseModel):
    """One saved track together with the instant it was added to the library."""

    model_config = ConfigDict(frozen=True)

    added_at: datetime
    track_id: str
    track_name: str
    album_name: str
    release_date: str = ""
    artists: tuple[str, ...] = ()

    @field_validator("added_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def from_saved_track(cls, item: Mapping[str, Any]) -> "LibraryEntry":
        """Build an entry from a Spotify saved-track object."""
        track = item["track"]
        album = track.get("album") or {}
        return cls(
            added_at=item["added_at"],
            # Local files have no catalog id; they render as spotify:track:null.
            track_id=track.get("id") or "null",
            track_name=track.get("name") or "",
            album_name=album.get("name") or "",
            release_date=album.get("release_date") or "",
            artists=tuple(artist.get("name") or "" for artist in track.get("artists") or ()),
        )

    def sort_key(self) -> tuple:
        """Newest first, then track name, album name and track id ascending."""
        return (-self.added_at.timestamp(), self.track_name, self.album_name, self.track_id)


def sort_entries(entries: Sequence[LibraryEntry]) -> list[LibraryEntry]:
    """Return ``entries`` in the canonical export order."""
    return sorted(entries, key=LibraryEntry.sort_key)


class LibraryPage(BaseModel):
    """A single page of the saved-tracks collection."""

    model_config = ConfigDict(frozen=True)

    items: tuple[LibraryEntry, ...] = ()
    total: int = 0
    offset: int = 0
    next_offset: Optional[int] = None

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "LibraryPage":
        """Parse a paging object; ``next`` being null ends the pagination."""
        items = tuple(
            LibraryEntry.from_saved_track(item)
            for item in payload.get("items") or ()
            if item.get("track")
        )
        offset = int(payload.get("offset") or 0)
        limit = int(payload.get("limit") or len(items))
        next_offset = offset + limit if payload.get("next") else None
        return cls(
            items=items,
            total=int(payload.get("total") or 0),
            offset=offset,
            next_offset=next_offset,
        )


__all__ = ["LibraryEntry", "LibraryPage", "sort_entries"]
