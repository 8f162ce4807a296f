"""Unit tests for password hashing and token helpers."""

import pytest

from ngurra_pathways.core.errors import BadRequestError
from ngurra_pathways.server.core.security import generate_token, hash_password, hash_token, verify_password


class TestPasswords:
    def test_hash_and_verify(self):
        password_hash = hash_password("correct horse", rounds=4)
        assert password_hash != "correct horse"
        assert verify_password("correct horse", password_hash)
        assert not verify_password("wrong horse", password_hash)

    def test_malformed_hash_is_rejected(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_longest_accepted_password(self):
        password = "a" * 72
        assert verify_password(password, hash_password(password, rounds=4))

    @pytest.mark.parametrize("password", ["a" * 100, "\u00e9" * 37])
    def test_over_72_bytes_cannot_be_hashed(self, password):
        with pytest.raises(BadRequestError):
            hash_password(password, rounds=4)

    def test_over_72_bytes_never_verifies(self):
        password_hash = hash_password("a" * 72, rounds=4)
        assert verify_password("a" * 100, password_hash) is False


class TestTokens:
    def test_generated_tokens_are_unique(self):
        assert generate_token() != generate_token()

    def test_hash_token_is_stable_sha256(self):
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64
        assert hash_token("abc") != hash_token("abd")
