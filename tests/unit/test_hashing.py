"""
Unit tests for the hashing primitive.

Tests verify:
- Deterministic salted password hashes
- Password round-trip and mismatch rejection
- Token derivation randomness and format
- Randomness failures surface as Fatal
"""

import re
from unittest.mock import patch

import pytest

from src.domain.exceptions import Fatal
from src.domain.hashing import derive_token, generate_salt, hash_password, verify_password

ROUNDS = 4


class TestGenerateSalt:
    """Tests for generate_salt."""

    def test_salt_is_bcrypt_salt(self) -> None:
        """Salt uses the bcrypt $2b$ format with the requested cost."""
        salt = generate_salt(ROUNDS)
        assert re.match(r"^\$2[aby]\$04\$", salt)

    def test_salts_vary(self) -> None:
        """Fresh salt per call."""
        assert generate_salt(ROUNDS) != generate_salt(ROUNDS)

    def test_randomness_failure_is_fatal(self) -> None:
        """OS randomness failure is surfaced, not retried."""
        with patch("src.domain.hashing.bcrypt.gensalt", side_effect=OSError("no entropy")):
            with pytest.raises(Fatal):
                generate_salt(ROUNDS)


class TestPasswordHash:
    """Tests for hash_password and verify_password."""

    def test_hash_is_deterministic(self) -> None:
        """Equal password and salt always give equal output."""
        salt = generate_salt(ROUNDS)
        assert hash_password("pw123456", salt) == hash_password("pw123456", salt)

    def test_hash_is_not_plaintext(self) -> None:
        salt = generate_salt(ROUNDS)
        assert "pw123456" not in hash_password("pw123456", salt)

    @pytest.mark.parametrize("password", ["a", "pw123456", "pässwörd", " spaces "])
    def test_round_trip(self, password: str) -> None:
        """verify(password, hash(password, salt), salt) holds."""
        salt = generate_salt(ROUNDS)
        assert verify_password(password, hash_password(password, salt), salt) is True

    def test_wrong_password_fails(self) -> None:
        salt = generate_salt(ROUNDS)
        digest = hash_password("pw123456", salt)
        assert verify_password("pw123457", digest, salt) is False

    def test_wrong_salt_fails(self) -> None:
        """A hash made under another salt never verifies."""
        digest = hash_password("pw123456", generate_salt(ROUNDS))
        assert verify_password("pw123456", digest, generate_salt(ROUNDS)) is False

    def test_wrong_hash_fails(self) -> None:
        salt = generate_salt(ROUNDS)
        other = hash_password("something-else", salt)
        assert verify_password("pw123456", other, salt) is False

    def test_empty_hash_or_salt_fails(self) -> None:
        salt = generate_salt(ROUNDS)
        digest = hash_password("pw123456", salt)
        assert verify_password("pw123456", "", salt) is False
        assert verify_password("pw123456", digest, "") is False

    def test_malformed_salt_fails(self) -> None:
        """Garbage salt is a failed verification, not an exception."""
        assert verify_password("pw123456", "$2b$04$whatever", "not-a-salt") is False

    def test_password_over_72_bytes_rejected(self) -> None:
        salt = generate_salt(ROUNDS)
        with pytest.raises(ValueError):
            hash_password("a" * 73, salt)

    def test_suffix_past_72_bytes_does_not_verify(self) -> None:
        """Bytes beyond the bcrypt limit are never ignored."""
        salt = generate_salt(ROUNDS)
        digest = hash_password("a" * 72, salt)
        assert verify_password("a" * 72, digest, salt) is True
        assert verify_password("a" * 72 + "EXTRA", digest, salt) is False



class TestDeriveToken:
    """Tests for derive_token."""

    def test_token_is_sha256_hex(self) -> None:
        """Token is 64 lowercase hex characters (URL-safe)."""
        token = derive_token("user@example.com", 1_700_000_000)
        assert re.match(r"^[0-9a-f]{64}$", token)

    def test_tokens_vary_for_same_input(self) -> None:
        """CSPRNG salt makes tokens unique even within the same second."""
        tokens = {derive_token("user@example.com", 1_700_000_000) for _ in range(10)}
        assert len(tokens) == 10

    def test_randomness_failure_is_fatal(self) -> None:
        with patch("src.domain.hashing.secrets.token_hex", side_effect=OSError("no entropy")):
            with pytest.raises(Fatal):
                derive_token("user@example.com", 1_700_000_000)
