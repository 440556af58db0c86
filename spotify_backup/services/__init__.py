"""Service layer exports."""

from .credential_cipher import CredentialCipher
from .credential_vault import SPOTIFY_TOKEN_KEY, CredentialVault
from .library_csv import serialize
from .library_sync import LibrarySyncJob, fingerprint
from .oauth_session import OAuthSession

__all__ = [
    "CredentialCipher",
    "CredentialVault",
    "LibrarySyncJob",
    "OAuthSession",
    "SPOTIFY_TOKEN_KEY",
    "fingerprint",
    "serialize",
]
