"""
Application configuration models and helpers.

Centralizes settings management so both the FastAPI app and the scheduled
sync runner share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class SpotifySettings(BaseSettings):
    """Configuration required for interacting with the Spotify APIs."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    client_id: str = Field(..., alias="SPOTIFY_CLIENT_ID")
    client_secret: str = Field(..., alias="SPOTIFY_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., alias="SPOTIFY_REDIRECT_URI")
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        ("playlist-read-private", "user-library-read"),
        alias="SPOTIFY_SCOPES",
    )
    page_size: int = Field(
        50,
        alias="SPOTIFY_PAGE_SIZE",
        ge=1,
        le=50,
        description="Number of saved tracks requested per page.",
    )
    api_base_url: str = Field("https://api.spotify.com/v1", alias="SPOTIFY_API_BASE_URL")
    accounts_base_url: str = Field(
        "https://accounts.spotify.com", alias="SPOTIFY_ACCOUNTS_BASE_URL"
    )
    refresh_margin_seconds: int = Field(
        0,
        alias="SPOTIFY_REFRESH_MARGIN_SECONDS",
        ge=0,
        description="Treat the access token as expired this many seconds early.",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma or space separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope for scope in value.replace(",", " ").split() if scope)


class GitHubSettings(BaseSettings):
    """Target repository and identity for the exported library file."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(..., alias="GITHUB_ACCESS_TOKEN")
    owner: str = Field(..., alias="GITHUB_OWNER")
    repo: str = Field(..., alias="GITHUB_REPO")
    path: str = Field("liked_songs.csv", alias="GITHUB_PATH")
    branch: Optional[str] = Field(
        None,
        alias="GITHUB_BRANCH",
        description="Branch to read and commit to. Defaults to the repository default.",
    )
    committer_name: str = Field("github-actions[bot]", alias="GITHUB_COMMITTER_NAME")
    committer_email: str = Field(
        "41898282+github-actions[bot]@users.noreply.github.com",
        alias="GITHUB_COMMITTER_EMAIL",
    )
    api_base_url: str = Field("https://api.github.com", alias="GITHUB_API_BASE_URL")


class StorageSettings(BaseSettings):
    """Where the credential record is persisted."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    credential_db_path: str = Field(
        "data/spotify_backup.db", alias="CREDENTIAL_DB_PATH"
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    token_encryption_secret: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application and sync runner."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        alias="FRONTEND_BASE_URL",
        description="Optional URL for redirecting users back to the front-end.",
    )
    http_timeout_seconds: float = Field(10.0, alias="HTTP_TIMEOUT_SECONDS", gt=0)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GitHubSettings",
    "SecuritySettings",
    "SpotifySettings",
    "StorageSettings",
    "get_settings",
]
