"""
Unit tests for the Spotify Accounts service client.
"""

import asyncio
import pytest
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

from conftest import spotify_response
from spotify_remote.auth.spotify_oauth import (
    TokenExchangeError,
    build_authorize_url,
    exchange_code,
    refresh_access_token,
)
from spotify_remote.shared.logging_utils import MessageType


class TestBuildAuthorizeUrl:

    def test_includes_pkce_challenge(self):
        url = build_authorize_url("state-123", "challenge-abc")
        params = parse_qs(urlparse(url).query)

        assert url.startswith("https://accounts.spotify.com/authorize?")
        assert params["state"] == ["state-123"]
        assert params["code_challenge"] == ["challenge-abc"]
        assert params["code_challenge_method"] == ["S256"]

    def test_without_challenge(self):
        params = parse_qs(urlparse(build_authorize_url("state-123")).query)

        assert "code_challenge" not in params
        assert params["client_id"] == ["test-client-id"]
        assert params["response_type"] == ["code"]


class TestExchangeCode:

    def test_returns_token_response(self, mock_spotify):
        mock_spotify.post.return_value = spotify_response(200, json={
            "access_token": "access-abc",
            "token_type": "bearer",
            "expires_in": 3600,
            "scope": "user-read-playback-state",
            "refresh_token": "refresh-abc",
        })

        token = asyncio.run(exchange_code("code-1", "v" * 64))

        assert token.access_token == "access-abc"
        assert token.token_type == "Bearer"
        assert token.refresh_token == "refresh-abc"

    def test_pkce_requires_verifier(self, mock_spotify):
        with pytest.raises(TokenExchangeError) as exc_info:
            asyncio.run(exchange_code("code-1"))

        assert exc_info.value.error == "missing_verifier"
        mock_spotify.post.assert_not_called()

    def test_client_secret_needs_no_verifier(self, mock_spotify, secret_config):
        mock_spotify.post.return_value = spotify_response(200, json={"access_token": "access-abc"})

        token = asyncio.run(exchange_code("code-1"))

        assert token.access_token == "access-abc"
        assert mock_spotify.post.call_args.kwargs["headers"]["Authorization"].startswith("Basic ")

    def test_oauth_error(self, mock_spotify):
        mock_spotify.post.return_value = spotify_response(400, json={
            "error": "invalid_grant",
            "error_description": "Authorization code expired"
        })

        with pytest.raises(TokenExchangeError) as exc_info:
            asyncio.run(exchange_code("code-1", "v" * 64))

        assert exc_info.value.error == "invalid_grant"
        assert exc_info.value.description == "Authorization code expired"
        assert exc_info.value.status_code == 400

    def test_non_json_error(self, mock_spotify):
        mock_spotify.post.return_value = spotify_response(500, text="<html>oops</html>")

        with pytest.raises(TokenExchangeError) as exc_info:
            asyncio.run(exchange_code("code-1", "v" * 64))

        assert exc_info.value.error == "token_request_failed"
        assert "500" in exc_info.value.description

    def test_malformed_success_body(self, mock_spotify):
        mock_spotify.post.return_value = spotify_response(200, json={"token_type": "Bearer"})

        with pytest.raises(TokenExchangeError) as exc_info:
            asyncio.run(exchange_code("code-1", "v" * 64))

        assert exc_info.value.error == "invalid_token_response"


class TestRefreshAccessToken:

    def test_form_for_public_client(self, mock_spotify):
        mock_spotify.post.return_value = spotify_response(200, json={"access_token": "fresh"})

        token = asyncio.run(refresh_access_token("refresh-abc"))

        assert token.access_token == "fresh"
        assert token.refresh_token is None
        assert mock_spotify.post.call_args.kwargs["data"] == {
            "grant_type": "refresh_token",
            "refresh_token": "refresh-abc",
            "client_id": "test-client-id",
        }

    def test_form_for_confidential_client(self, mock_spotify, secret_config):
        mock_spotify.post.return_value = spotify_response(200, json={"access_token": "fresh"})

        asyncio.run(refresh_access_token("refresh-abc"))

        assert "client_id" not in mock_spotify.post.call_args.kwargs["data"]

    def test_logs_refresh_message_type(self, mock_spotify):
        mock_spotify.post.return_value = spotify_response(200, json={"access_token": "fresh"})

        with patch("spotify_remote.auth.spotify_oauth.logger.log_message") as mock_log:
            asyncio.run(refresh_access_token("refresh-abc"))

        message_types = [call.args[2] for call in mock_log.call_args_list]
        assert message_types == [MessageType.TOKEN_REFRESH.value, MessageType.RESPONSE.value]

    def test_logs_exchange_message_type_on_failure(self, mock_spotify):
        mock_spotify.post.return_value = spotify_response(400, json={"error": "invalid_grant"})

        with patch("spotify_remote.auth.spotify_oauth.logger.log_message") as mock_log:
            with pytest.raises(TokenExchangeError):
                asyncio.run(exchange_code("code", code_verifier="verifier"))

        request_call, failure_call = mock_log.call_args_list
        assert request_call.args[2] == MessageType.TOKEN_EXCHANGE.value
        assert failure_call.args[2] == MessageType.TOKEN_EXCHANGE.value
        assert failure_call.kwargs["success"] is False


class TestTokenExchangeError:

    @pytest.mark.parametrize("status_code,rejected", [
        (400, True),
        (401, True),
        (429, False),
        (500, False),
        (503, False),
        (None, False),
    ])
    def test_rejected(self, status_code, rejected):
        error = TokenExchangeError("invalid_grant", "Refresh token revoked", status_code)

        assert error.rejected is rejected
