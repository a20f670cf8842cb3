# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for password hashing utilities.

Tests the PasswordHasher class.
"""

import pytest

from academy.domains.auth.password import PasswordHasher


@pytest.fixture
def hasher() -> PasswordHasher:
    """Hasher with the minimum bcrypt cost."""
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher class."""

    def test_hash_password_returns_bcrypt_hash(self, hasher: PasswordHasher) -> None:
        """Test that hashing returns a bcrypt hash string."""
        hashed = hasher.hash("test_password_123")

        assert isinstance(hashed, str)
        assert hashed.startswith("$2b$")
        assert len(hashed) == 60

    def test_hash_produces_different_hashes_for_same_password(
        self, hasher: PasswordHasher
    ) -> None:
        assert hasher.hash("same") != hasher.hash("same")

    def test_hash_empty_password_raises(self, hasher: PasswordHasher) -> None:
        with pytest.raises(ValueError):
            hasher.hash("")

    def test_verify_correct_password(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("correct_password")

        assert hasher.verify("correct_password", hashed) is True

    def test_verify_incorrect_password(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("correct_password")

        assert hasher.verify("wrong_password", hashed) is False

    def test_verify_empty_password_returns_false(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("valid_password")

        assert hasher.verify("", hashed) is False

    def test_verify_missing_hash_returns_false(self, hasher: PasswordHasher) -> None:
        assert hasher.verify("password", None) is False
        assert hasher.verify("password", "") is False

    def test_verify_invalid_hash_returns_false(self, hasher: PasswordHasher) -> None:
        """Malformed hashes count as a mismatch instead of raising."""
        assert hasher.verify("password", "not-a-bcrypt-hash") is False

    def test_long_passwords_are_truncated_consistently(self, hasher: PasswordHasher) -> None:
        """Only the first 72 bytes take part in hashing."""
        password = "a" * 100
        hashed = hasher.hash(password)

        assert hasher.verify(password, hashed) is True
        assert hasher.verify("a" * 72, hashed) is True
