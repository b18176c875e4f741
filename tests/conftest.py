"""
Pytest configuration and shared fixtures for the Spotify remote tests.

Outbound calls to Spotify are intercepted by patching ``httpx.AsyncClient``;
responses are real ``httpx.Response`` objects so status codes, bodies and
``204 No Content`` behave exactly as they would over the network.
"""

import pytest
import secrets
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, patch

import httpx
from fastapi.testclient import TestClient

from spotify_remote.main import app
from spotify_remote.auth.token_store import TokenStore
from spotify_remote.shared.config import SPOTIFY_CONFIG
from spotify_remote.shared.models import TokenResponse

API_URL = "https://api.spotify.com/v1/me/player"
TOKEN_URL = "https://accounts.spotify.com/api/token"


def spotify_response(status_code: int = 200,
                     json: Optional[Any] = None,
                     text: Optional[str] = None) -> httpx.Response:
    """Build a Spotify response; no ``json`` or ``text`` gives an empty body."""
    if json is not None:
        return httpx.Response(status_code, json=json)
    if text is not None:
        return httpx.Response(status_code, text=text)
    return httpx.Response(status_code)


def expired_token_response() -> httpx.Response:
    return spotify_response(401, json={
        "error": {"status": 401, "message": "The access token expired"}
    })


def track_item(name: str = "Song", artists=("Artist",), image: Optional[str] = "https://i.scdn.co/image/cover") -> Dict[str, Any]:
    """A trimmed Web API track object."""
    return {
        "type": "track",
        "name": name,
        "artists": [{"name": artist} for artist in artists],
        "album": {"images": [{"url": image, "height": 640, "width": 640}] if image else []},
    }


@pytest.fixture(autouse=True)
def spotify_config():
    """Pin configuration so a local .env cannot change test behavior."""
    with patch.dict(SPOTIFY_CONFIG, {
        "client_id": "test-client-id",
        "client_secret": "",
        "redirect_uri": "http://127.0.0.1:3000/auth/callback",
        "api_url": API_URL,
        "token_url": TOKEN_URL,
    }):
        yield SPOTIFY_CONFIG


@pytest.fixture
def secret_config(spotify_config):
    """Confidential client configuration (HTTP Basic instead of PKCE)."""
    spotify_config["client_secret"] = "test-client-secret"
    return spotify_config


@pytest.fixture(autouse=True)
def token_store() -> TokenStore:
    """A fresh, empty token store installed on the app for every test."""
    store = TokenStore()
    app.state.token_store = store
    return store


@pytest.fixture
def token_response() -> TokenResponse:
    return TokenResponse(
        access_token=secrets.token_urlsafe(48),
        token_type="Bearer",
        expires_in=3600,
        scope="user-read-playback-state user-modify-playback-state",
        refresh_token=secrets.token_urlsafe(48),
    )


@pytest.fixture
def authenticated_store(token_store, token_response) -> TokenStore:
    """Token store holding a valid access and refresh token."""
    token_store.save(token_response)
    return token_store


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def mock_spotify():
    """
    Patch ``httpx.AsyncClient`` and yield the client instance used inside
    ``async with``. Set ``request.side_effect`` (Web API) or
    ``post.side_effect`` (token endpoint) to the responses Spotify should give.
    """
    with patch('httpx.AsyncClient') as mock_httpx:
        mock_client_instance = AsyncMock()
        mock_httpx.return_value.__aenter__.return_value = mock_client_instance
        yield mock_client_instance


@pytest.fixture(autouse=True)
def disable_logging():
    """Disable logging during tests to reduce noise."""
    import logging
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "security: marks tests as security-focused tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "routes" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        elif "security" in item.nodeid:
            item.add_marker(pytest.mark.security)
        else:
            item.add_marker(pytest.mark.unit)
