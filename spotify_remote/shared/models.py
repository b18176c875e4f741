"""
Pydantic models for Spotify payloads.

These cover the subset of the Spotify Accounts and Web API responses the app
reads, plus the flattened track view handed to the templates.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

QUEUE_DISPLAY_LIMIT = 10

EXPIRED_TOKEN_MESSAGE = "The access token expired"


class TokenType(str, Enum):
    """OAuth token types."""
    BEARER = "Bearer"


class TokenResponse(BaseModel):
    """
    Token endpoint response from the Spotify Accounts service.

    ``refresh_token`` is optional because a refresh grant may not rotate it.
    """
    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    access_token: str = Field(..., min_length=1, description="Spotify access token")
    token_type: TokenType = Field(default=TokenType.BEARER, description="Token type (Bearer)")
    expires_in: int = Field(default=3600, ge=1, description="Token lifetime in seconds")
    scope: str = Field(default="", description="Granted scopes, space separated")
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")

    @field_validator('token_type', mode='before')
    @classmethod
    def normalize_token_type(cls, v):
        """Spotify documents ``Bearer`` but some responses use lower case."""
        if isinstance(v, str) and v.lower() == "bearer":
            return TokenType.BEARER
        return v


class OAuthError(BaseModel):
    """
    Error body returned by the Spotify Accounts service (RFC 6749 format).
    """
    error: str = Field(..., description="Error code")
    error_description: Optional[str] = Field(default=None, description="Human-readable error description")


class RegularError(BaseModel):
    """
    Error object returned by the Spotify Web API.

    The Web API wraps it as ``{"error": {"status": ..., "message": ...}}``.
    """
    status: int = Field(..., description="HTTP status code")
    message: str = Field(default="", description="Short error description")

    @property
    def is_token_expired(self) -> bool:
        return self.status == 401 and self.message == EXPIRED_TOKEN_MESSAGE


class Device(BaseModel):
    """A Spotify Connect device."""
    id: Optional[str] = None
    name: str = ""
    type: str = ""
    is_active: bool = False


class Track(BaseModel):
    """
    Flattened view of a track or episode for templates.
    """
    name: str
    artists: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None

    @property
    def artist_line(self) -> str:
        return ", ".join(self.artists)

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Track":
        """
        Build a track view from a Web API track or episode object.

        Episodes have no ``artists`` or ``album``; the show name and the
        episode's own images are used instead.
        """
        artists = [artist.get("name", "") for artist in item.get("artists") or []]
        if not artists and item.get("show"):
            artists = [item["show"].get("name", "")]

        images = (item.get("album") or {}).get("images") or item.get("images") or []
        image_url = images[0].get("url") if images else None

        return cls(name=item.get("name", ""), artists=artists, image_url=image_url)


class PlayerView(BaseModel):
    """Everything the player page renders."""
    track: Optional[Track] = None
    queue: List[Track] = Field(default_factory=list)
    no_device: bool = False

    @classmethod
    def from_api(cls,
                 currently_playing: Optional[Dict[str, Any]],
                 queue: Optional[Dict[str, Any]]) -> "PlayerView":
        """
        Combine the currently-playing and queue responses.

        Either response may be None when Spotify answers 204 No Content.
        The queue is truncated to ``QUEUE_DISPLAY_LIMIT`` entries.
        """
        item = (currently_playing or {}).get("item")
        track = Track.from_item(item) if item else None

        entries = (queue or {}).get("queue") or []
        return cls(
            track=track,
            queue=[Track.from_item(entry) for entry in entries[:QUEUE_DISPLAY_LIMIT]],
        )
