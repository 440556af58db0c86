"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Optional

from spotify_backup.clients import (
    GitHubContentsClient,
    LibraryClient,
    SpotifyOAuthClient,
    SQLiteCredentialStore,
)
from spotify_backup.core.config import AppSettings, get_settings
from spotify_backup.services import (
    CredentialCipher,
    CredentialVault,
    LibrarySyncJob,
    OAuthSession,
)
from spotify_backup.services.library_sync import LibraryClientFactory


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings()


@lru_cache()
def get_credential_store() -> SQLiteCredentialStore:
    """Provide the SQLite-backed credential store."""
    settings = _settings()
    return SQLiteCredentialStore(settings.storage.credential_db_path)


@lru_cache()
def get_credential_cipher() -> CredentialCipher:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.spotify.client_secret
    return CredentialCipher(secret=secret)


@lru_cache()
def get_credential_vault() -> CredentialVault:
    """Bind the store and cipher to the Spotify credential key."""
    return CredentialVault(get_credential_store(), get_credential_cipher())


@lru_cache()
def get_spotify_oauth_client() -> SpotifyOAuthClient:
    """Create a singleton Spotify OAuth client."""
    settings = _settings()
    return SpotifyOAuthClient(settings.spotify, timeout=settings.http_timeout_seconds)


@lru_cache()
def get_github_client() -> GitHubContentsClient:
    """Provide the contents API client for the export file."""
    settings = _settings()
    return GitHubContentsClient(settings.github, timeout=settings.http_timeout_seconds)


def get_refresh_margin() -> timedelta:
    return timedelta(seconds=_settings().spotify.refresh_margin_seconds)


def get_oauth_session() -> Optional[OAuthSession]:
    """Load the stored session for the current trigger, if any."""
    return OAuthSession.load(
        get_credential_vault(),
        get_spotify_oauth_client(),
        refresh_margin=get_refresh_margin(),
    )


def build_library_client(session: OAuthSession) -> LibraryClient:
    """Build a library client around ``session`` using configured limits."""
    settings = _settings()
    return LibraryClient(
        session,
        api_base_url=settings.spotify.api_base_url,
        page_size=settings.spotify.page_size,
        timeout=settings.http_timeout_seconds,
    )


def get_library_client_factory() -> LibraryClientFactory:
    """Factory the routes use to build a library client for a session."""
    return build_library_client


def get_library_sync_job() -> LibrarySyncJob:
    """Build the export job using configured clients."""
    return LibrarySyncJob(
        get_github_client(),
        library_client_factory=get_library_client_factory(),
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
