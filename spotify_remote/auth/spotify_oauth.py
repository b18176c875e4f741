"""
Spotify Accounts service client.

Builds the authorize URL and performs the two token grants the app needs:
``authorization_code`` after the login callback and ``refresh_token`` when the
Web API reports an expired access token.

With a client secret configured the app authenticates as a confidential
client using HTTP Basic auth. Without one it falls back to PKCE and sends
``client_id`` and ``code_verifier`` in the form body instead.
"""

import base64
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from ..shared.config import SPOTIFY_CONFIG, uses_pkce
from ..shared.models import OAuthError, TokenResponse
from ..shared.logging_utils import ComponentType, MessageType, PlayerLogger

logger = PlayerLogger("AUTH")


class TokenExchangeError(Exception):
    """Raised when the Spotify token endpoint rejects a grant or cannot be reached."""

    def __init__(self, error: str, description: str, status_code: Optional[int] = None):
        self.error = error
        self.description = description
        self.status_code = status_code
        super().__init__(f"{error}: {description}")

    @property
    def rejected(self) -> bool:
        """True when Spotify refused the grant itself, as opposed to failing to answer."""
        return self.status_code is not None and 400 <= self.status_code < 500 and self.status_code != 429


def build_authorize_url(state: str, code_challenge: Optional[str] = None) -> str:
    """
    Build the Spotify authorize URL the browser is redirected to.

    Args:
        state: CSRF state value stored in the session
        code_challenge: PKCE S256 challenge, only for public clients

    Returns:
        str: Authorize URL with all query parameters
    """
    params = {
        "client_id": SPOTIFY_CONFIG["client_id"],
        "response_type": "code",
        "redirect_uri": SPOTIFY_CONFIG["redirect_uri"],
        "scope": SPOTIFY_CONFIG["scope"],
        "state": state,
    }
    if code_challenge:
        params["code_challenge_method"] = "S256"
        params["code_challenge"] = code_challenge

    return f"{SPOTIFY_CONFIG['authorize_url']}?{urlencode(params)}"


def _client_headers() -> Dict[str, str]:
    headers = {"Content-Type": "application/x-www-form-urlencoded"}
    if not uses_pkce():
        credentials = f"{SPOTIFY_CONFIG['client_id']}:{SPOTIFY_CONFIG['client_secret']}"
        encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {encoded}"
    return headers


def _parse_error(response) -> OAuthError:
    try:
        return OAuthError(**response.json())
    except (ValueError, TypeError, ValidationError):
        return OAuthError(
            error="token_request_failed",
            error_description=f"Token endpoint returned HTTP {response.status_code}"
        )


async def _request_token(grant: str, form: Dict[str, str]) -> TokenResponse:
    """POST a grant to the token endpoint and parse the result."""
    token_url = SPOTIFY_CONFIG["token_url"]
    message_type = MessageType.TOKEN_REFRESH if grant == "refresh_token" else MessageType.TOKEN_EXCHANGE

    logger.log_message(
        ComponentType.AUTH.value, ComponentType.SPOTIFY_ACCOUNTS.value,
        message_type.value,
        dict(form, endpoint=token_url, pkce=uses_pkce())
    )

    try:
        async with httpx.AsyncClient(timeout=SPOTIFY_CONFIG["api_timeout"]) as client:
            response = await client.post(token_url, data=form, headers=_client_headers())
    except httpx.RequestError as e:
        logger.log_error("network_error", str(e), {"endpoint": token_url})
        raise TokenExchangeError("network_error", f"Failed to reach Spotify Accounts: {e}") from e

    if response.status_code != 200:
        oauth_error = _parse_error(response)
        logger.log_message(
            ComponentType.SPOTIFY_ACCOUNTS.value, ComponentType.AUTH.value,
            message_type.value,
            {
                "grant_type": grant,
                "status_code": response.status_code,
                "error": oauth_error.error,
                "error_description": oauth_error.error_description
            },
            success=False
        )
        raise TokenExchangeError(
            oauth_error.error,
            oauth_error.error_description or "Token request failed",
            response.status_code
        )

    try:
        token_response = TokenResponse(**response.json())
    except (ValueError, TypeError, ValidationError) as e:
        raise TokenExchangeError("invalid_token_response", str(e), response.status_code) from e

    logger.log_message(
        ComponentType.SPOTIFY_ACCOUNTS.value, ComponentType.AUTH.value,
        MessageType.RESPONSE.value,
        {
            "grant_type": grant,
            "access_token": token_response.access_token,
            "expires_in": token_response.expires_in,
            "scope": token_response.scope
        }
    )
    return token_response


async def exchange_code(code: str, code_verifier: Optional[str] = None) -> TokenResponse:
    """
    Exchange an authorization code for tokens.

    Args:
        code: Authorization code from the callback
        code_verifier: PKCE verifier stored in the session (public clients)

    Raises:
        TokenExchangeError: If Spotify rejects the code or is unreachable
    """
    form = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": SPOTIFY_CONFIG["redirect_uri"],
    }
    if uses_pkce():
        if not code_verifier:
            raise TokenExchangeError("missing_verifier", "No PKCE verifier found in session")
        form["client_id"] = SPOTIFY_CONFIG["client_id"]
        form["code_verifier"] = code_verifier

    return await _request_token("authorization_code", form)


async def refresh_access_token(refresh_token: str) -> TokenResponse:
    """
    Obtain a fresh access token with the stored refresh token.

    Raises:
        TokenExchangeError: If the refresh token was revoked or Spotify is unreachable
    """
    form = {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
    }
    if uses_pkce():
        form["client_id"] = SPOTIFY_CONFIG["client_id"]

    return await _request_token("refresh_token", form)
