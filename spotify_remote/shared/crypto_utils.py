"""
PKCE (Proof Key for Code Exchange) and state helpers for the Spotify login.

Spotify accepts the S256 method from RFC 7636 for public clients, which lets
the app log in without shipping a client secret.
"""

import secrets
import hashlib
import base64
from typing import Tuple


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode('utf-8').rstrip('=')


class PKCEGenerator:
    """PKCE code verifier and challenge generator (S256 only)."""

    @staticmethod
    def generate_challenge() -> Tuple[str, str]:
        """
        Generate PKCE code verifier and challenge pair.

        Returns:
            Tuple[str, str]: (code_verifier, code_challenge)

        Example:
            verifier, challenge = PKCEGenerator.generate_challenge()
            # verifier: 86-character base64url string
            # challenge: SHA256 hash of verifier, base64url encoded
        """
        # 64 random bytes gives an 86 character verifier, inside the 43-128 range
        verifier = _b64url(secrets.token_bytes(64))
        return verifier, PKCEGenerator.challenge_for(verifier)

    @staticmethod
    def challenge_for(verifier: str) -> str:
        """Derive the S256 challenge for a verifier."""
        return _b64url(hashlib.sha256(verifier.encode('utf-8')).digest())

    @staticmethod
    def generate_state_parameter() -> str:
        """Generate a random state value for CSRF protection of the callback."""
        return _b64url(secrets.token_bytes(16))


def constant_time_compare(a: str, b: str) -> bool:
    """
    Perform constant-time string comparison.

    Args:
        a: First string
        b: Second string

    Returns:
        bool: True if strings are equal, False otherwise
    """
    return secrets.compare_digest(a.encode('utf-8'), b.encode('utf-8'))
