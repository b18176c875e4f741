"""
Runtime configuration for the Spotify remote.

Values come from environment variables, optionally loaded from a local
``.env`` file, and are collected into a single ``SPOTIFY_CONFIG`` mapping
that the routes read at request time.
"""

import os
import secrets
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

SPOTIFY_ACCOUNTS_URL = "https://accounts.spotify.com"
SPOTIFY_API_URL = "https://api.spotify.com/v1/me/player"

DEFAULT_SCOPE = " ".join([
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
])


def load_spotify_config() -> Dict[str, Any]:
    """
    Build the configuration mapping from the current environment.

    Returns:
        Dict[str, Any]: Client credentials, OAuth endpoints and server settings
    """
    return {
        "client_id": os.getenv("SPOTIFY_CLIENT_ID", ""),
        # An empty secret selects the PKCE (public client) flow
        "client_secret": os.getenv("SPOTIFY_CLIENT_SECRET", ""),
        "redirect_uri": os.getenv("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:3000/auth/callback"),
        "scope": os.getenv("SPOTIFY_SCOPE", DEFAULT_SCOPE),
        "authorize_url": f"{SPOTIFY_ACCOUNTS_URL}/authorize",
        "token_url": f"{SPOTIFY_ACCOUNTS_URL}/api/token",
        "api_url": os.getenv("SPOTIFY_API_URL", SPOTIFY_API_URL),
        "api_timeout": float(os.getenv("SPOTIFY_API_TIMEOUT", "10")),
        "session_secret": os.getenv("SESSION_SECRET", secrets.token_urlsafe(32)),
        "host": os.getenv("HOST", "127.0.0.1"),
        "port": int(os.getenv("PORT", "3000")),
    }


SPOTIFY_CONFIG = load_spotify_config()


def uses_pkce() -> bool:
    """True when no client secret is configured and PKCE must be used."""
    return not SPOTIFY_CONFIG["client_secret"]
