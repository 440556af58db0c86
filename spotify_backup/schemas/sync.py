"""
Pydantic models describing sync results returned by the API.
"""

from typing import Optional

from pydantic import BaseModel, Field

from spotify_backup.models.outcomes import SyncOutcome, SyncStatus, UpstreamFailure


class FailureDetail(BaseModel):
    """Structured details of a failed upstream call."""

    operation: Optional[str] = None
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    body: Optional[str] = None


class SyncResponse(BaseModel):
    """Result of a sync request."""

    status: SyncStatus
    message: str
    entry_count: int = 0
    fingerprint: Optional[str] = Field(None, description="Git blob sha of the new export.")
    remote_fingerprint: Optional[str] = Field(
        None, description="Git blob sha of the file before this run, if it existed."
    )
    commit_sha: Optional[str] = None
    html_url: Optional[str] = None
    failure: Optional[FailureDetail] = None

    @classmethod
    def from_outcome(cls, outcome: SyncOutcome) -> "SyncResponse":
        failure = None
        if isinstance(outcome.failure, UpstreamFailure):
            failure = FailureDetail(
                operation=outcome.failure.operation,
                status_code=outcome.failure.status_code,
                status_text=outcome.failure.status_text,
                body=outcome.failure.body,
            )
        return cls(
            status=outcome.status,
            message=outcome.message,
            entry_count=outcome.entry_count,
            fingerprint=outcome.fingerprint,
            remote_fingerprint=outcome.remote_fingerprint,
            commit_sha=outcome.commit_sha,
            html_url=outcome.html_url,
            failure=failure,
        )


__all__ = ["FailureDetail", "SyncResponse"]
