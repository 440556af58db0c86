"""Authenticated client for the Spotify Web API saved-tracks collection."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import httpx

from spotify_backup.models.library import LibraryEntry, LibraryPage, sort_entries
from spotify_backup.models.outcomes import NotAuthenticated, RefreshFailure, UpstreamFailure

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from spotify_backup.services.oauth_session import OAuthSession

logger = logging.getLogger(__name__)

FetchFailure = UpstreamFailure | NotAuthenticated


class LibraryClient:
    """Read the current user's saved tracks, refreshing the session as needed."""

    def __init__(
        self,
        session: OAuthSession,
        *,
        api_base_url: str = "https://api.spotify.com/v1",
        page_size: int = 50,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._session: Optional[OAuthSession] = session
        self._api_base_url = api_base_url.rstrip("/")
        self._page_size = page_size
        self._timeout = timeout
        self._transport = transport

    @property
    def session(self) -> Optional[OAuthSession]:
        """The latest session, or ``None`` once a refresh has failed."""
        return self._session

    async def _authorization(self) -> str | FetchFailure:
        if self._session is None:
            return NotAuthenticated("spotify session was revoked by a failed refresh")
        try:
            refreshed = await self._session.ensure_fresh()
        except httpx.TransportError as exc:
            return UpstreamFailure(
                operation="refresh access token",
                status_code=0,
                status_text=type(exc).__name__,
                body=str(exc),
            )
        if isinstance(refreshed, RefreshFailure):
            self._session = None
            return refreshed
        self._session = refreshed
        return refreshed.record.authorization_header

    async def _get(
        self, path: str, *, operation: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any] | FetchFailure:
        authorization = await self._authorization()
        if not isinstance(authorization, str):
            return authorization

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self._api_base_url}{path}",
                    params=params,
                    headers={"Authorization": authorization, "Accept": "application/json"},
                )
        except httpx.TransportError as exc:
            logger.error("%s failed: %s", operation, exc)
            return UpstreamFailure(
                operation=operation,
                status_code=0,
                status_text=type(exc).__name__,
                body=str(exc),
            )

        if not response.is_success:
            logger.error(
                "%s failed. %s: %s; %s",
                operation,
                response.status_code,
                response.reason_phrase,
                response.text,
            )
            return UpstreamFailure(
                operation=operation,
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError:
            logger.error("%s returned a non-JSON body", operation)
            return UpstreamFailure(
                operation=operation,
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=response.text,
            )

    async def current_user(self) -> Dict[str, Any] | FetchFailure:
        """Profile of the connected account."""
        return await self._get("/me", operation="fetch current user")

    async def fetch_page(self, offset: int = 0) -> LibraryPage | FetchFailure:
        """Fetch one page of saved tracks starting at ``offset``."""
        payload = await self._get(
            "/me/tracks",
            operation=f"fetch saved tracks at offset {offset}",
            params={"limit": self._page_size, "offset": offset},
        )
        if not isinstance(payload, dict):
            return payload
        try:
            return LibraryPage.from_response(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("unreadable saved tracks page at offset %s: %s", offset, exc)
            return UpstreamFailure(
                operation=f"fetch saved tracks at offset {offset}",
                status_code=200,
                status_text="OK",
                body=str(exc),
            )

    async def fetch_all(self) -> List[LibraryEntry] | FetchFailure:
        """Fetch every saved track and return them in canonical order.

        The first page reveals the total, so the remaining pages are requested
        concurrently. Any failing page fails the whole fetch; which failure is
        reported when several pages fail is whichever completes first.
        """
        first = await self.fetch_page(0)
        if not isinstance(first, LibraryPage):
            return first

        entries: List[LibraryEntry] = list(first.items)
        offsets = (
            range(first.offset + self._page_size, first.total, self._page_size)
            if first.next_offset is not None
            else range(0)
        )
        tasks = [asyncio.create_task(self.fetch_page(offset)) for offset in offsets]
        logger.info("Fetching %d saved tracks across %d pages", first.total, len(tasks) + 1)

        try:
            for completed in asyncio.as_completed(tasks):
                page = await completed
                if not isinstance(page, LibraryPage):
                    return page
                entries.extend(page.items)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        return sort_entries(entries)


__all__ = ["FetchFailure", "LibraryClient"]
