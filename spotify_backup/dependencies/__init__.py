"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    build_library_client,
    get_app_settings,
    get_credential_cipher,
    get_credential_store,
    get_credential_vault,
    get_github_client,
    get_library_client_factory,
    get_library_sync_job,
    get_oauth_session,
    get_refresh_margin,
    get_spotify_oauth_client,
)

__all__ = [
    "build_library_client",
    "get_app_settings",
    "get_credential_cipher",
    "get_credential_store",
    "get_credential_vault",
    "get_github_client",
    "get_library_client_factory",
    "get_library_sync_job",
    "get_oauth_session",
    "get_refresh_margin",
    "get_spotify_oauth_client",
]
