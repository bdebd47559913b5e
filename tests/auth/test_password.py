"""Tests for password hashing and strength rules."""

import pytest

from relohub.auth.password import (
    PasswordStrengthError,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("SecurePass1")
        assert hashed.startswith("$argon2id$")
        assert verify_password("SecurePass1", hashed)

    def test_wrong_password(self):
        assert not verify_password("WrongPass1", hash_password("SecurePass1"))

    def test_missing_hash_never_verifies(self):
        assert not verify_password("relohub-timing-equalizer", None)

    def test_malformed_hash(self):
        assert not verify_password("SecurePass1", "not-a-hash")


class TestStrength:
    def test_valid(self):
        validate_password_strength("Relocate2026")

    @pytest.mark.parametrize(
        ("password", "message"),
        [
            ("", "empty"),
            ("Ab1", "at least 8"),
            ("A1" + "a" * 127, "128"),
            ("lowercase1", "uppercase"),
            ("UPPERCASE1", "lowercase"),
            ("NoDigitsHere", "digit"),
        ],
    )
    def test_rejected(self, password, message):
        with pytest.raises(PasswordStrengthError, match=message):
            validate_password_strength(password)
