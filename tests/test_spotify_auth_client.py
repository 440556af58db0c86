from __future__ import annotations

import base64
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from spotify_backup.clients.spotify_auth import OAuthTokenExchangeError, SpotifyOAuthClient
from spotify_backup.core.config import SpotifySettings


def _settings() -> SpotifySettings:
    return SpotifySettings(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="https://example.com/api/auth/spotify/callback",
        scopes=("playlist-read-private", "user-library-read"),
        accounts_base_url="https://accounts.spotify.com",
    )


def test_build_authorization_url_contains_expected_params() -> None:
    url = SpotifyOAuthClient(_settings()).build_authorization_url()

    parts = urlsplit(url)
    params = parse_qs(parts.query)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://accounts.spotify.com/authorize"
    assert params["client_id"] == ["client-id"]
    assert params["response_type"] == ["code"]
    assert params["redirect_uri"] == ["https://example.com/api/auth/spotify/callback"]
    assert params["scope"] == ["playlist-read-private user-library-read"]
    assert params["show_dialog"] == ["false"]


@pytest.mark.asyncio
async def test_exchange_authorization_code_uses_basic_auth_and_form() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"access_token": "a", "expires_in": 3600})

    client = SpotifyOAuthClient(_settings(), transport=httpx.MockTransport(handler))
    payload = await client.exchange_authorization_code("auth-code")

    assert payload == {"access_token": "a", "expires_in": 3600}
    request = requests[0]
    assert str(request.url) == "https://accounts.spotify.com/api/token"
    expected = base64.b64encode(b"client-id:client-secret").decode("ascii")
    assert request.headers["authorization"] == f"Basic {expected}"
    form = parse_qs(request.content.decode("utf-8"))
    assert form == {
        "grant_type": ["authorization_code"],
        "code": ["auth-code"],
        "redirect_uri": ["https://example.com/api/auth/spotify/callback"],
    }


@pytest.mark.asyncio
async def test_refresh_token_posts_refresh_grant() -> None:
    forms: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        forms.append(parse_qs(request.content.decode("utf-8")))
        return httpx.Response(200, json={"access_token": "b", "expires_in": 3600})

    client = SpotifyOAuthClient(_settings(), transport=httpx.MockTransport(handler))
    await client.refresh_token("refresh-1")

    assert forms == [{"grant_type": ["refresh_token"], "refresh_token": ["refresh-1"]}]


@pytest.mark.asyncio
async def test_token_endpoint_error_raises_with_details() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    client = SpotifyOAuthClient(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(OAuthTokenExchangeError) as excinfo:
        await client.refresh_token("revoked")

    assert excinfo.value.status_code == 400
    assert excinfo.value.status_text == "Bad Request"
    assert "invalid_grant" in excinfo.value.body
