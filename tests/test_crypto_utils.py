"""
Unit tests for PKCE and state helpers.
"""

import base64
import hashlib

from spotify_remote.shared.crypto_utils import PKCEGenerator, constant_time_compare


class TestPKCEGenerator:

    def test_generate_challenge_returns_valid_pair(self):
        verifier, challenge = PKCEGenerator.generate_challenge()

        # Spotify requires a verifier between 43 and 128 characters
        assert 43 <= len(verifier) <= 128
        assert len(challenge) == 43
        assert PKCEGenerator.challenge_for(verifier) == challenge

    def test_generate_challenge_creates_unique_pairs(self):
        pairs = [PKCEGenerator.generate_challenge() for _ in range(10)]

        assert len({verifier for verifier, _ in pairs}) == 10
        assert len({challenge for _, challenge in pairs}) == 10

    def test_verifier_uses_unreserved_characters(self):
        verifier, _ = PKCEGenerator.generate_challenge()

        assert "=" not in verifier
        assert verifier.replace("-", "").replace("_", "").isalnum()

    def test_challenge_matches_rfc7636_example(self):
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

        assert PKCEGenerator.challenge_for(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_challenge_is_sha256_base64url(self):
        verifier, challenge = PKCEGenerator.generate_challenge()
        expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).decode().rstrip("=")

        assert challenge == expected

    def test_challenge_differs_for_other_verifier(self):
        verifier, _ = PKCEGenerator.generate_challenge()
        _, wrong_challenge = PKCEGenerator.generate_challenge()

        assert PKCEGenerator.challenge_for(verifier) != wrong_challenge


class TestStateParameter:

    def test_state_is_random_and_url_safe(self):
        states = {PKCEGenerator.generate_state_parameter() for _ in range(10)}

        assert len(states) == 10
        for state in states:
            assert state.replace("-", "").replace("_", "").isalnum()


def test_constant_time_compare():
    assert constant_time_compare("abc", "abc") is True
    assert constant_time_compare("abc", "abd") is False
    assert constant_time_compare("abc", "abcd") is False
