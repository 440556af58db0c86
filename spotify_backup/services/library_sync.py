"""
Export the saved-tracks library to the configured GitHub file.

A write happens only when the git blob hash of the freshly rendered document
differs from the ``sha`` GitHub reports for the current file, and every write
carries the revision read moments earlier in the same run.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import date
from typing import Callable, List, Optional

from spotify_backup.clients.github_contents import (
    CommitResult,
    GitHubContentsClient,
    RemoteDocument,
)
from spotify_backup.clients.spotify_library import FetchFailure, LibraryClient
from spotify_backup.models.library import LibraryEntry
from spotify_backup.models.outcomes import (
    ConflictFailure,
    NotAuthenticated,
    RefreshFailure,
    RemoteIsDirectory,
    SyncOutcome,
    SyncStatus,
)
from spotify_backup.services.library_csv import serialize
from spotify_backup.services.oauth_session import Clock, OAuthSession, utcnow

logger = logging.getLogger(__name__)

LibraryClientFactory = Callable[[OAuthSession], LibraryClient]


def fingerprint(document: bytes) -> str:
    """Git blob object id of ``document``, matching GitHub's contents ``sha``."""
    header = b"blob %d\0" % len(document)
    return hashlib.sha1(header + document).hexdigest()


def commit_message(day: date) -> str:
    return f"Song update for {day:%a %b %d %Y}"


def _fetch_failure_outcome(failure: FetchFailure) -> SyncOutcome:
    if isinstance(failure, NotAuthenticated):
        status = SyncStatus.UNAUTHENTICATED
    elif isinstance(failure, RefreshFailure):
        status = SyncStatus.REFRESH_FAILED
    else:
        status = SyncStatus.FETCH_FAILED
    return SyncOutcome(status=status, failure=failure)


class LibrarySyncJob:
    """Fetch, render, fingerprint and conditionally commit the library export."""

    def __init__(
        self,
        github_client: GitHubContentsClient,
        *,
        library_client_factory: LibraryClientFactory,
        clock: Clock = utcnow,
    ) -> None:
        self._github = github_client
        self._library_client_factory = library_client_factory
        self._clock = clock

    async def _collect(self, session: Optional[OAuthSession]) -> List[LibraryEntry] | SyncOutcome:
        if session is None:
            logger.warning("No spotify credential stored; skipping export")
            return SyncOutcome(status=SyncStatus.UNAUTHENTICATED, failure=NotAuthenticated())

        entries = await self._library_client_factory(session).fetch_all()
        if not isinstance(entries, list):
            logger.error("unable to get saved tracks: %s", entries.describe())
            return _fetch_failure_outcome(entries)
        return entries

    async def preview(self, session: Optional[OAuthSession]) -> SyncOutcome:
        """Render the document without touching the remote repository."""
        entries = await self._collect(session)
        if isinstance(entries, SyncOutcome):
            return entries

        document = serialize(entries)
        return SyncOutcome(
            status=SyncStatus.PREVIEW,
            entry_count=len(entries),
            fingerprint=fingerprint(document.encode("utf-8")),
            document=document,
        )

    async def sync(self, session: Optional[OAuthSession]) -> SyncOutcome:
        """Commit the current library export if it differs from the remote file."""
        entries = await self._collect(session)
        if isinstance(entries, SyncOutcome):
            return entries

        document = serialize(entries).encode("utf-8")
        new_sha = fingerprint(document)

        remote = await self._github.read_document()
        if isinstance(remote, RemoteIsDirectory):
            return SyncOutcome(
                status=SyncStatus.REMOTE_IS_DIRECTORY,
                entry_count=len(entries),
                fingerprint=new_sha,
                failure=remote,
            )
        if remote is not None and not isinstance(remote, RemoteDocument):
            return SyncOutcome(
                status=SyncStatus.REMOTE_READ_FAILED,
                entry_count=len(entries),
                fingerprint=new_sha,
                failure=remote,
            )

        old_sha = remote.sha if remote is not None else None
        logger.info("old sha: %s", old_sha)
        logger.info("new sha: %s", new_sha)

        if old_sha == new_sha:
            logger.info("hashes match, not creating commit")
            return SyncOutcome(
                status=SyncStatus.UP_TO_DATE,
                entry_count=len(entries),
                fingerprint=new_sha,
                remote_fingerprint=old_sha,
                html_url=self._github.tree_url,
            )

        result = await self._github.write_document(
            document,
            message=commit_message(self._clock().date()),
            sha=old_sha,
        )
        if isinstance(result, CommitResult):
            logger.info("Committed %s as %s", self._github.path, result.commit_sha)
            return SyncOutcome(
                status=SyncStatus.UPDATED if old_sha else SyncStatus.CREATED,
                entry_count=len(entries),
                fingerprint=new_sha,
                remote_fingerprint=old_sha,
                commit_sha=result.commit_sha,
                html_url=result.html_url,
            )

        if isinstance(result, ConflictFailure):
            logger.warning("%s changed while syncing; not retrying", self._github.path)
        return SyncOutcome(
            status=SyncStatus.CONFLICT
            if isinstance(result, ConflictFailure)
            else SyncStatus.WRITE_FAILED,
            entry_count=len(entries),
            fingerprint=new_sha,
            remote_fingerprint=old_sha,
            failure=result,
        )


__all__ = ["LibraryClientFactory", "LibrarySyncJob", "commit_message", "fingerprint"]
