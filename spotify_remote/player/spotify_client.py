"""
Async client for the Spotify Web API player endpoints.

Every method performs one call against ``/v1/me/player``. Responses with
``204 No Content`` (nothing playing, command accepted) come back as None.
Any non-2xx response raises ``SpotifyAPIError`` carrying the status and the
message from Spotify's error object.
"""

from typing import Any, Dict, List, Optional

import httpx

from ..shared.config import SPOTIFY_CONFIG
from ..shared.models import Device, RegularError
from ..shared.logging_utils import PlayerLogger

logger = PlayerLogger("PLAYER")

# Without this Spotify reports podcast episodes as a null item
EPISODE_PARAMS = {"additional_types": "episode"}


class SpotifyAPIError(Exception):
    """Raised when the Spotify Web API answers with an error status."""

    def __init__(self, status_code: int, message: str, method: Optional[str] = None,
                 url: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.method = method
        self.url = url
        super().__init__(f"HTTP {status_code}: {message}")

    @property
    def token_expired(self) -> bool:
        """True for Spotify's expired access token error."""
        return RegularError(status=self.status_code, message=self.message).is_token_expired


def _error_from_response(response: httpx.Response) -> RegularError:
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        return RegularError(
            status=error.get("status", response.status_code),
            message=error.get("message", "")
        )

    return RegularError(status=response.status_code, message=response.text or f"HTTP {response.status_code}")


class SpotifyPlayerClient:
    """
    Thin wrapper over the player endpoints used by the web routes.

    Args:
        auth_header: ``Authorization`` header for the logged-in user
        api_url: Base player URL, defaults to the configured one
        timeout: Request timeout in seconds
    """

    def __init__(self, auth_header: Dict[str, str], api_url: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.headers = dict(auth_header)
        self.api_url = (api_url or SPOTIFY_CONFIG["api_url"]).rstrip("/")
        self.timeout = timeout if timeout is not None else SPOTIFY_CONFIG["api_timeout"]

    async def _request(self, method: str, endpoint: str = "",
                       json: Optional[Dict[str, Any]] = None,
                       params: Optional[Dict[str, str]] = None) -> Optional[Dict[str, Any]]:
        url = f"{self.api_url}{endpoint}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(method, url, headers=self.headers, json=json, params=params)

        logger.log_api_call(method, url, response.status_code)

        if response.status_code >= 400:
            error = _error_from_response(response)
            raise SpotifyAPIError(error.status, error.message, method, url)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            logger.log_error("invalid_response", "Spotify returned a body that is not JSON", {"url": url})
            raise SpotifyAPIError(response.status_code, "Spotify returned an unreadable response", method, url)

    async def get_devices(self) -> List[Device]:
        """List the user's available Spotify Connect devices."""
        data = await self._request("GET", "/devices") or {}
        return [Device(**device) for device in data.get("devices") or []]

    async def transfer_playback(self, device_id: str, play: bool = True) -> None:
        """Move playback to ``device_id`` and optionally start playing."""
        await self._request("PUT", "", json={"device_ids": [device_id], "play": play})

    async def get_currently_playing(self) -> Optional[Dict[str, Any]]:
        """The currently playing item, or None when nothing is playing."""
        return await self._request("GET", "/currently-playing", params=EPISODE_PARAMS)

    async def get_queue(self) -> Optional[Dict[str, Any]]:
        """The user's queue (``currently_playing`` plus ``queue`` list)."""
        return await self._request("GET", "/queue", params=EPISODE_PARAMS)

    async def get_playback_state(self) -> Optional[Dict[str, Any]]:
        """Full playback state, or None when no device is active."""
        return await self._request("GET", "")

    async def pause(self) -> None:
        await self._request("PUT", "/pause")

    async def play(self) -> None:
        await self._request("PUT", "/play")

    async def previous(self) -> None:
        await self._request("POST", "/previous")

    async def next_track(self) -> None:
        await self._request("POST", "/next")
