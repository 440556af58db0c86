"""
FastAPI routes for the Spotify library backup service.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from spotify_backup.clients.spotify_auth import OAuthTokenExchangeError
from spotify_backup.dependencies import (
    get_app_settings,
    get_credential_vault,
    get_library_client_factory,
    get_library_sync_job,
    get_oauth_session,
    get_refresh_margin,
    get_spotify_oauth_client,
)
from spotify_backup.models.outcomes import SyncOutcome, SyncStatus
from spotify_backup.schemas import AuthorizationUrlResponse, CredentialStatus, SyncResponse
from spotify_backup.services.oauth_session import OAuthSession

router = APIRouter()
logger = logging.getLogger(__name__)

_UNAUTHORIZED_STATUSES = frozenset({SyncStatus.UNAUTHENTICATED, SyncStatus.REFRESH_FAILED})


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


def _http_status(outcome: SyncOutcome) -> HTTPStatus:
    if outcome.ok:
        return HTTPStatus.OK
    if outcome.status in _UNAUTHORIZED_STATUSES:
        return HTTPStatus.UNAUTHORIZED
    if outcome.status is SyncStatus.CONFLICT:
        return HTTPStatus.CONFLICT
    return HTTPStatus.INTERNAL_SERVER_ERROR


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/spotify/authorize", status_code=HTTPStatus.OK)
async def start_spotify_oauth_flow(
    request: Request,
    oauth_client: Annotated[Any, Depends(get_spotify_oauth_client)],
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Spotify consent screen.",
    ),
) -> Any:
    """Return the consent URL, or redirect browsers straight to it."""
    authorization_url = oauth_client.build_authorization_url()
    if redirect or _wants_html(request):
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)
    return AuthorizationUrlResponse(authorization_url=authorization_url)


@router.get("/auth/spotify/callback")
async def handle_spotify_oauth_callback(
    request: Request,
    oauth_client: Annotated[Any, Depends(get_spotify_oauth_client)],
    vault: Annotated[Any, Depends(get_credential_vault)],
    settings: Annotated[Any, Depends(get_app_settings)],
    refresh_margin: Annotated[Any, Depends(get_refresh_margin)],
    code: Optional[str] = Query(default=None, description="Authorization code from Spotify."),
    error: Optional[str] = Query(default=None, description="Error reported by Spotify."),
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
) -> Response:
    """Complete the OAuth exchange and store the credential."""
    if error is not None:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"encountered an error: {error}",
        )

    if code is None:
        return RedirectResponse(
            url=oauth_client.build_authorization_url(),
            status_code=HTTPStatus.TEMPORARY_REDIRECT,
        )

    try:
        await OAuthSession.authorize(
            code, vault, oauth_client, refresh_margin=refresh_margin
        )
    except OAuthTokenExchangeError as exc:
        logger.error("failed to request access token %s %s", exc.status_code, exc.status_text)
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Failed to exchange authorization code.",
        ) from exc

    result = {"status": "connected"}
    redirect_target = settings.frontend_base_url
    if redirect_target and (redirect or _wants_html(request)):
        return RedirectResponse(url=str(redirect_target), status_code=HTTPStatus.TEMPORARY_REDIRECT)
    return JSONResponse(content=result)


@router.api_route("/auth/spotify/deauthorize", methods=["GET", "POST"])
async def deauthorize_spotify(
    request: Request,
    vault: Annotated[Any, Depends(get_credential_vault)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> Response:
    """Forget the stored credential."""
    OAuthSession.forget(vault)
    logger.info("Spotify credential removed")

    if settings.frontend_base_url and _wants_html(request):
        return RedirectResponse(
            url=str(settings.frontend_base_url), status_code=HTTPStatus.TEMPORARY_REDIRECT
        )
    return JSONResponse(content={"status": "disconnected"})


@router.get("/auth/spotify/status", response_model=CredentialStatus)
async def spotify_credential_status(
    session: Annotated[Optional[OAuthSession], Depends(get_oauth_session)],
    library_client_factory: Annotated[Any, Depends(get_library_client_factory)],
    verify: bool = Query(
        default=False,
        description="When true, ask Spotify which account the credential belongs to.",
    ),
) -> CredentialStatus:
    """Report whether a credential is stored.

    Spotify is only contacted when ``verify`` is set; that call may refresh
    the access token, and a rejected refresh reports the user as signed out.
    """
    if session is None:
        return CredentialStatus(authenticated=False)

    account = None
    if verify:
        client = library_client_factory(session)
        profile = await client.current_user()
        if client.session is None:
            return CredentialStatus(authenticated=False)
        if not isinstance(profile, dict):
            raise HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=profile.describe())
        session = client.session
        account = profile.get("display_name") or profile.get("id")

    record = session.record
    return CredentialStatus(
        authenticated=True,
        expired=session.is_expired(),
        expires_at=record.expires_at,
        scope=sorted(record.scope),
        account=account,
    )


@router.get("/library/preview")
async def preview_library_export(
    session: Annotated[Optional[OAuthSession], Depends(get_oauth_session)],
    job: Annotated[Any, Depends(get_library_sync_job)],
) -> Response:
    """Render the CSV export without committing it."""
    outcome = await job.preview(session)
    if not outcome.ok:
        raise HTTPException(status_code=_http_status(outcome), detail=outcome.message)
    return Response(content=outcome.document, media_type="text/csv")


@router.post("/library/sync", response_model=SyncResponse)
async def sync_library_export(
    session: Annotated[Optional[OAuthSession], Depends(get_oauth_session)],
    job: Annotated[Any, Depends(get_library_sync_job)],
) -> JSONResponse:
    """Commit the CSV export to GitHub when it changed."""
    outcome = await job.sync(session)
    payload = SyncResponse.from_outcome(outcome)
    return JSONResponse(
        status_code=_http_status(outcome),
        content=payload.model_dump(mode="json"),
    )


__all__ = ["router"]
