"""Unit tests for auth/passwords.py -- bcrypt hashing and verification."""

import pytest

from auth.passwords import PasswordHasher


def test_hash_is_not_plaintext_and_verifies(hasher: PasswordHasher) -> None:
    secret = hasher.hash("correct horse battery staple")
    assert secret != "correct horse battery staple"
    assert secret.startswith("$2")
    assert hasher.verify("correct horse battery staple", secret)


def test_different_plaintext_does_not_verify(hasher: PasswordHasher) -> None:
    secret = hasher.hash("s3cret")
    assert not hasher.verify("s3cret ", secret)
    assert not hasher.verify("S3cret", secret)
    assert not hasher.verify("", secret)


def test_hashes_are_salted(hasher: PasswordHasher) -> None:
    """The same password hashed twice must produce two different secrets."""
    assert hasher.hash("repeat") != hasher.hash("repeat")


def test_empty_password_is_accepted(hasher: PasswordHasher) -> None:
    secret = hasher.hash("")
    assert hasher.verify("", secret)
    assert not hasher.verify("x", secret)


def test_cost_factor_is_encoded_in_hash() -> None:
    secret = PasswordHasher(rounds=5).hash("pw")
    assert secret.split("$")[2] == "05"


def test_verify_never_raises_on_malformed_secret(hasher: PasswordHasher) -> None:
    assert hasher.verify("pw", "not-a-bcrypt-hash") is False
    assert hasher.verify("pw", "") is False


def test_hash_rejects_passwords_over_72_bytes(hasher: PasswordHasher) -> None:
    with pytest.raises(ValueError):
        hasher.hash("a" * 73)


def test_rounds_out_of_range_rejected() -> None:
    with pytest.raises(ValueError):
        PasswordHasher(rounds=3)


def test_verify_dummy_returns_nothing(hasher: PasswordHasher) -> None:
    assert hasher.verify_dummy("anything") is None


def test_verify_missing_hash_is_mismatch(hasher: PasswordHasher) -> None:
    assert hasher.verify("pw", None) is False
