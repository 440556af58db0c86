"""GitHub repository contents API wrapper for a single exported file."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from spotify_backup.core.config import GitHubSettings
from spotify_backup.models.outcomes import ConflictFailure, RemoteIsDirectory, UpstreamFailure

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RemoteDocument:
    """Current revision of the remote file."""

    path: str
    sha: str


@dataclass(slots=True, frozen=True)
class CommitResult:
    """Identifiers of the commit produced by a write."""

    commit_sha: str
    content_sha: str
    html_url: Optional[str] = None


class GitHubContentsClient:
    """Read and conditionally write one file through the contents API."""

    def __init__(
        self,
        settings: GitHubSettings,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport

    @property
    def path(self) -> str:
        return self._settings.path

    @property
    def file_url(self) -> str:
        settings = self._settings
        return (
            f"{settings.api_base_url.rstrip('/')}/repos/"
            f"{settings.owner}/{settings.repo}/contents/{settings.path.lstrip('/')}"
        )

    @property
    def tree_url(self) -> str:
        branch = self._settings.branch or "HEAD"
        return f"https://github.com/{self._settings.owner}/{self._settings.repo}/tree/{branch}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"token {self._settings.access_token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "spotify-backup",
        }

    def _failure(self, operation: str, response: httpx.Response) -> UpstreamFailure:
        logger.error(
            "failed to %s %s. %s: %s; %s",
            operation,
            self.path,
            response.status_code,
            response.reason_phrase,
            response.text,
        )
        failure_type = ConflictFailure if response.status_code == 409 else UpstreamFailure
        return failure_type(
            operation=f"{operation} {self.path}",
            status_code=response.status_code,
            status_text=response.reason_phrase,
            body=response.text,
        )

    def _transport_failure(self, operation: str, exc: httpx.TransportError) -> UpstreamFailure:
        logger.error("failed to %s %s: %s", operation, self.path, exc)
        return UpstreamFailure(
            operation=f"{operation} {self.path}",
            status_code=0,
            status_text=type(exc).__name__,
            body=str(exc),
        )

    async def read_document(
        self,
    ) -> Optional[RemoteDocument] | RemoteIsDirectory | UpstreamFailure:
        """Fetch the file's revision; ``None`` means the file does not exist yet."""
        params = {"ref": self._settings.branch} if self._settings.branch else None
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self.file_url, params=params, headers=self._headers())
        except httpx.TransportError as exc:
            return self._transport_failure("fetch", exc)

        if response.status_code == 404:
            logger.info("%s does not exist yet", self.path)
            return None
        if not response.is_success:
            return self._failure("fetch", response)

        payload = response.json()
        if isinstance(payload, list) or payload.get("type") == "dir":
            logger.error("%s is a directory", self.path)
            return RemoteIsDirectory(path=self.path)

        return RemoteDocument(
            path=payload.get("path", self.path),
            sha=payload["sha"],
        )

    async def write_document(
        self,
        content: bytes,
        *,
        message: str,
        sha: Optional[str],
    ) -> CommitResult | UpstreamFailure:
        """Create or update the file.

        ``sha`` must be the revision just read; GitHub answers 409 when the file
        has moved on since, which is reported as ``ConflictFailure``.
        """
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "committer": {
                "name": self._settings.committer_name,
                "email": self._settings.committer_email,
            },
        }
        if sha is not None:
            body["sha"] = sha
        if self._settings.branch:
            body["branch"] = self._settings.branch

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.put(self.file_url, json=body, headers=self._headers())
        except httpx.TransportError as exc:
            return self._transport_failure("update", exc)

        if not response.is_success:
            return self._failure("update", response)

        payload = response.json()
        commit = payload.get("commit") or {}
        return CommitResult(
            commit_sha=commit.get("sha", ""),
            content_sha=(payload.get("content") or {}).get("sha", ""),
            html_url=commit.get("html_url"),
        )


__all__ = ["CommitResult", "GitHubContentsClient", "RemoteDocument"]
