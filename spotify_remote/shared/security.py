"""
Security utilities for the Spotify remote.

Response security headers and validation of the user-controlled values the
app echoes back into redirects.
"""

import re
from typing import Optional
from urllib.parse import urlparse


class InputValidator:
    """
    Input validation for OAuth parameters and redirect targets.
    """

    STATE_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')

    @staticmethod
    def validate_state(state: str) -> bool:
        """
        Validate OAuth state parameter.

        Args:
            state: State parameter to validate

        Returns:
            bool: True if valid state, False otherwise
        """
        if not isinstance(state, str):
            return False

        return (
            1 <= len(state) <= 128 and
            InputValidator.STATE_PATTERN.match(state) is not None
        )

    @staticmethod
    def validate_local_path(path: Optional[str]) -> bool:
        """
        Check that a redirect target stays on this server.

        Accepts absolute paths such as ``/player`` or ``/player?x=1``.
        Rejects full URLs, protocol-relative URLs (``//evil.example``) and
        backslash tricks that browsers normalize into a host.

        Args:
            path: Candidate redirect target

        Returns:
            bool: True if the path is a safe local redirect, False otherwise
        """
        if not isinstance(path, str) or not path.startswith('/'):
            return False

        if path.startswith('//') or '\\' in path:
            return False

        if any(ord(char) < 32 for char in path):
            return False

        parsed = urlparse(path)
        return not parsed.scheme and not parsed.netloc

    @staticmethod
    def safe_local_path(path: Optional[str], default: str = "/player") -> str:
        """Return ``path`` if it is a safe local redirect, otherwise ``default``."""
        return path if InputValidator.validate_local_path(path) else default


class SecurityHeaders:
    """
    Security headers for HTTP responses.
    """

    @staticmethod
    def get_security_headers() -> dict:
        """
        Get security headers for every response.

        Playback pages show live state, so responses are never cached.

        Returns:
            dict: Dictionary of security headers
        """
        return {
            'X-Content-Type-Options': 'nosniff',
            'X-Frame-Options': 'DENY',
            'X-XSS-Protection': '1; mode=block',
            'Referrer-Policy': 'same-origin',
            'Cache-Control': 'no-cache, no-store, must-revalidate',
            'Pragma': 'no-cache',
            'Expires': '0'
        }
