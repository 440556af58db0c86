try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import copy
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from spotify_backup.clients.credential_store import InMemoryCredentialStore
from spotify_backup.clients.spotify_auth import OAuthTokenExchangeError
from spotify_backup.main import app
from spotify_backup.models.credentials import CredentialRecord
from spotify_backup.models.outcomes import RefreshFailure, UpstreamFailure
from spotify_backup.services.credential_cipher import CredentialCipher
from spotify_backup.services.credential_vault import CredentialVault
from spotify_backup.services.oauth_session import OAuthSession


class DummyOAuthClient:
    def __init__(self) -> None:
        self.codes: list[str] = []
        self.fail = False

    def build_authorization_url(self) -> str:
        return "https://accounts.example.com/authorize?client_id=abc"

    async def exchange_authorization_code(self, code: str) -> dict:
        self.codes.append(code)
        if self.fail:
            raise OAuthTokenExchangeError(
                "failed to request access token", status_code=400, status_text="Bad Request"
            )
        return {
            "access_token": "access-token",
            "refresh_token": "refresh-token",
            "token_type": "Bearer",
            "scope": "user-library-read",
            "expires_in": 3600,
        }


@pytest.fixture()
def oauth_overrides():
    from spotify_backup import dependencies

    dummy_client = DummyOAuthClient()
    vault = CredentialVault(InMemoryCredentialStore(), CredentialCipher(secret="route-secret"))
    base_settings = copy.deepcopy(dependencies.get_app_settings())
    base_settings.frontend_base_url = None

    overrides = {
        dependencies.get_spotify_oauth_client: lambda: dummy_client,
        dependencies.get_credential_vault: lambda: vault,
        dependencies.get_app_settings: lambda: base_settings,
        dependencies.get_refresh_margin: lambda: timedelta(0),
        dependencies.get_oauth_session: lambda: OAuthSession.load(vault, dummy_client),
    }

    app.dependency_overrides.update(overrides)

    yield dummy_client, vault, base_settings

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


@pytest.mark.anyio
async def test_health_endpoint() -> None:
    async with _client() as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_authorize_returns_json_by_default(oauth_overrides):
    async with _client() as client:
        response = await client.get("/api/auth/spotify/authorize")

    assert response.status_code == 200
    assert response.json() == {
        "authorization_url": "https://accounts.example.com/authorize?client_id=abc"
    }


@pytest.mark.anyio
async def test_authorize_redirects_for_html_accept(oauth_overrides):
    async with _client() as client:
        response = await client.get(
            "/api/auth/spotify/authorize", headers={"accept": "text/html"}
        )

    assert response.status_code == 307
    assert response.headers["location"].startswith("https://accounts.example.com/authorize")


@pytest.mark.anyio
async def test_callback_stores_credential_and_returns_json(oauth_overrides):
    dummy_client, vault, _ = oauth_overrides

    async with _client() as client:
        response = await client.get("/api/auth/spotify/callback", params={"code": "oauth-code"})
        status = await client.get("/api/auth/spotify/status")

    assert response.status_code == 200
    assert response.json() == {"status": "connected"}
    assert dummy_client.codes == ["oauth-code"]
    record = vault.load()
    assert record is not None
    assert record.refresh_token == "refresh-token"

    data = status.json()
    assert data["authenticated"] is True
    assert data["expired"] is False
    assert data["scope"] == ["user-library-read"]


@pytest.mark.anyio
async def test_callback_redirects_when_frontend_available(oauth_overrides):
    _, _, settings = oauth_overrides
    settings.frontend_base_url = "https://app.example.com/connected"

    async with _client() as client:
        response = await client.get(
            "/api/auth/spotify/callback",
            params={"code": "oauth-code"},
            headers={"accept": "text/html"},
        )

    assert response.status_code == 307
    assert response.headers["location"] == "https://app.example.com/connected"


@pytest.mark.anyio
async def test_callback_without_code_restarts_consent(oauth_overrides):
    async with _client() as client:
        response = await client.get("/api/auth/spotify/callback")

    assert response.status_code == 307
    assert response.headers["location"].startswith("https://accounts.example.com/authorize")


@pytest.mark.anyio
async def test_callback_reports_provider_error(oauth_overrides):
    dummy_client, vault, _ = oauth_overrides

    async with _client() as client:
        response = await client.get(
            "/api/auth/spotify/callback", params={"error": "access_denied"}
        )

    assert response.status_code == 400
    assert response.json()["detail"] == "encountered an error: access_denied"
    assert dummy_client.codes == []
    assert vault.load() is None


@pytest.mark.anyio
async def test_callback_reports_failed_exchange(oauth_overrides):
    dummy_client, vault, _ = oauth_overrides
    dummy_client.fail = True

    async with _client() as client:
        response = await client.get("/api/auth/spotify/callback", params={"code": "bad"})

    assert response.status_code == 400
    assert vault.load() is None


@pytest.mark.anyio
async def test_deauthorize_forgets_credential(oauth_overrides):
    _, vault, _ = oauth_overrides
    vault.save(
        CredentialRecord(
            access_token="a",
            refresh_token="r",
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
    )

    async with _client() as client:
        response = await client.post("/api/auth/spotify/deauthorize")
        status = await client.get("/api/auth/spotify/status")

    assert response.status_code == 200
    assert response.json() == {"status": "disconnected"}
    assert vault.load() is None
    assert status.json()["authenticated"] is False


class StubLibraryClient:
    def __init__(self, session, profile) -> None:
        self.session = session
        self.profile = profile

    async def current_user(self):
        if isinstance(self.profile, RefreshFailure):
            self.session = None
        return self.profile


@pytest.fixture()
def profile_factory(oauth_overrides):
    from spotify_backup import dependencies

    _, vault, _ = oauth_overrides
    vault.save(
        CredentialRecord(
            access_token="a",
            refresh_token="r",
            scope=frozenset({"user-library-read"}),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
    )
    calls: list = []

    def install(profile):
        def factory(session):
            calls.append(session)
            return StubLibraryClient(session, profile)

        app.dependency_overrides[dependencies.get_library_client_factory] = lambda: factory
        return calls

    return install


@pytest.mark.anyio
async def test_status_does_not_contact_spotify_by_default(profile_factory):
    calls = profile_factory({"id": "listener"})

    async with _client() as client:
        response = await client.get("/api/auth/spotify/status")

    assert response.status_code == 200
    assert response.json()["account"] is None
    assert calls == []


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("profile", "account"),
    [
        ({"id": "listener", "display_name": "Night Listener"}, "Night Listener"),
        ({"id": "listener", "display_name": None}, "listener"),
    ],
)
async def test_status_verify_reports_connected_account(profile_factory, profile, account):
    calls = profile_factory(profile)

    async with _client() as client:
        response = await client.get("/api/auth/spotify/status", params={"verify": "true"})

    assert response.status_code == 200
    data = response.json()
    assert data["authenticated"] is True
    assert data["account"] == account
    assert len(calls) == 1


@pytest.mark.anyio
async def test_status_verify_with_rejected_refresh_reports_signed_out(profile_factory):
    profile_factory(
        RefreshFailure(
            operation="refresh access token",
            status_code=400,
            status_text="Bad Request",
            body="invalid_grant",
        )
    )

    async with _client() as client:
        response = await client.get("/api/auth/spotify/status", params={"verify": "true"})

    assert response.status_code == 200
    assert response.json()["authenticated"] is False


@pytest.mark.anyio
async def test_status_verify_upstream_failure_is_bad_gateway(profile_factory):
    profile_factory(
        UpstreamFailure(
            operation="fetch current user",
            status_code=503,
            status_text="Service Unavailable",
            body="",
        )
    )

    async with _client() as client:
        response = await client.get("/api/auth/spotify/status", params={"verify": "true"})

    assert response.status_code == 502
    assert "fetch current user" in response.json()["detail"]
