"""
Typed failure values and sync outcomes.

Upstream failures are returned to callers rather than raised so that the
boundary layer can decide how to report them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(slots=True, frozen=True)
class UpstreamFailure:
    """A non-success response from a remote API."""

    operation: str
    status_code: int
    status_text: str
    body: str

    def describe(self) -> str:
        return f"{self.operation} failed. {self.status_code}: {self.status_text}; {self.body}"


@dataclass(slots=True, frozen=True)
class RefreshFailure(UpstreamFailure):
    """The authorization server rejected the refresh token."""


@dataclass(slots=True, frozen=True)
class ConflictFailure(UpstreamFailure):
    """The remote document moved between reading it and writing to it."""


@dataclass(slots=True, frozen=True)
class NotAuthenticated:
    """No usable credential is available."""

    reason: str = "spotify not authorized"

    def describe(self) -> str:
        return self.reason


@dataclass(slots=True, frozen=True)
class RemoteIsDirectory:
    """The configured remote path resolves to a directory listing."""

    path: str

    def describe(self) -> str:
        return f"{self.path} is a directory"


class SyncStatus(str, Enum):
    """Result categories reported by a sync or preview run."""

    UP_TO_DATE = "up_to_date"
    CREATED = "created"
    UPDATED = "updated"
    PREVIEW = "preview"
    UNAUTHENTICATED = "unauthenticated"
    REFRESH_FAILED = "refresh_failed"
    FETCH_FAILED = "fetch_failed"
    REMOTE_READ_FAILED = "remote_read_failed"
    REMOTE_IS_DIRECTORY = "remote_is_directory"
    CONFLICT = "conflict"
    WRITE_FAILED = "write_failed"


_SUCCESS_STATUSES = frozenset(
    {SyncStatus.UP_TO_DATE, SyncStatus.CREATED, SyncStatus.UPDATED, SyncStatus.PREVIEW}
)

Failure = UpstreamFailure | NotAuthenticated | RemoteIsDirectory


@dataclass(slots=True)
class SyncOutcome:
    """What a single sync (or preview) invocation did."""

    status: SyncStatus
    entry_count: int = 0
    fingerprint: Optional[str] = None
    remote_fingerprint: Optional[str] = None
    commit_sha: Optional[str] = None
    html_url: Optional[str] = None
    document: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.status in _SUCCESS_STATUSES

    @property
    def message(self) -> str:
        if self.failure is not None:
            return self.failure.describe()
        if self.status is SyncStatus.UP_TO_DATE:
            return "already up to date"
        return self.status.value


__all__ = [
    "ConflictFailure",
    "Failure",
    "NotAuthenticated",
    "RefreshFailure",
    "RemoteIsDirectory",
    "SyncOutcome",
    "SyncStatus",
    "UpstreamFailure",
]
