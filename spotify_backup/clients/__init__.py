"""Expose constructed client wrappers."""

from .credential_store import CredentialStore, InMemoryCredentialStore, SQLiteCredentialStore
from .github_contents import CommitResult, GitHubContentsClient, RemoteDocument
from .spotify_auth import OAuthTokenExchangeError, SpotifyOAuthClient
from .spotify_library import LibraryClient

__all__ = [
    "CommitResult",
    "CredentialStore",
    "GitHubContentsClient",
    "InMemoryCredentialStore",
    "LibraryClient",
    "OAuthTokenExchangeError",
    "RemoteDocument",
    "SQLiteCredentialStore",
    "SpotifyOAuthClient",
]
