"""
In-memory token storage for the Spotify remote.

The app acts for a single Spotify account, so one store per process holds
the current access token and refresh token. Restarting the server means
logging in again.
"""

from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Dict, Optional

from fastapi import Request

from ..shared.models import TokenResponse
from ..shared.logging_utils import PlayerLogger

logger = PlayerLogger("AUTH-STORAGE")


class NotAuthenticatedError(Exception):
    """Raised when a Spotify call is attempted before the user has logged in."""


class TokenStore:
    """
    Holds the OAuth tokens of the logged-in user.

    ``save`` merges refresh responses into the existing state: Spotify does
    not always return a new refresh token, in which case the previous one
    stays valid.
    """

    def __init__(self):
        self._lock = Lock()
        self._access_token: Optional[str] = None
        self._token_type = "Bearer"
        self._refresh_token: Optional[str] = None
        self._scope = ""
        self._expires_at: Optional[datetime] = None

    def save(self, token_response: TokenResponse) -> None:
        """
        Store a token endpoint response.

        Args:
            token_response: Parsed response from the authorization or refresh grant
        """
        with self._lock:
            self._access_token = token_response.access_token
            self._token_type = token_response.token_type
            if token_response.refresh_token:
                self._refresh_token = token_response.refresh_token
            if token_response.scope:
                self._scope = token_response.scope
            self._expires_at = datetime.now(timezone.utc) + timedelta(seconds=token_response.expires_in)

        logger.log_message(
            "AUTH", "AUTH-STORAGE",
            "Tokens Stored",
            {
                "access_token": token_response.access_token,
                "refresh_token_rotated": token_response.refresh_token is not None,
                "expires_at": self._expires_at.isoformat(),
                "scope": self._scope
            }
        )

    def clear(self) -> None:
        """Forget all tokens."""
        with self._lock:
            self._access_token = None
            self._token_type = "Bearer"
            self._refresh_token = None
            self._scope = ""
            self._expires_at = None

        logger.log_info("Tokens cleared")

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._refresh_token

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._expires_at

    def is_expired(self, leeway_seconds: int = 0) -> bool:
        """
        Check the locally known expiry.

        Args:
            leeway_seconds: Treat the token as expired this many seconds early

        Returns:
            bool: True if a token is stored and its expiry has passed
        """
        if self._expires_at is None:
            return False
        return datetime.now(timezone.utc) + timedelta(seconds=leeway_seconds) >= self._expires_at

    def authorization_header(self) -> Dict[str, str]:
        """
        Build the Authorization header for Web API calls.

        Raises:
            NotAuthenticatedError: If no access token is stored
        """
        if not self._access_token:
            raise NotAuthenticatedError("No Spotify access token stored")
        return {"Authorization": f"{self._token_type} {self._access_token}"}


def get_token_store(request: Request) -> TokenStore:
    """FastAPI dependency returning the process-wide token store."""
    return request.app.state.token_store
