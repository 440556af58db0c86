"""Public schema exports."""

from .auth import AuthorizationUrlResponse, CredentialStatus
from .sync import FailureDetail, SyncResponse

__all__ = [
    "AuthorizationUrlResponse",
    "CredentialStatus",
    "FailureDetail",
    "SyncResponse",
]
