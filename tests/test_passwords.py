"""Unit tests for auth/passwords.py -- bcrypt hashing and verification.

Covers:
- hash() never returns the plaintext and salts every call
- verify() matches the right password and rejects a wrong one
- the default cost factor is 10
- primitive failures surface as HashingError / ComparisonError, not False
"""

import pytest

from auth.exceptions import ComparisonError, HashingError
from auth.passwords import PasswordHasher


def test_hash_is_not_plaintext(hasher):
    hashed = hasher.hash("password123")
    assert hashed != "password123"
    assert hashed.startswith("$2")


def test_hash_is_salted(hasher):
    assert hasher.hash("password123") != hasher.hash("password123")


def test_verify_matches(hasher):
    hashed = hasher.hash("password123")
    assert hasher.verify("password123", hashed) is True


def test_verify_rejects_wrong_password(hasher):
    hashed = hasher.hash("password123")
    assert hasher.verify("wrong", hashed) is False


def test_default_cost_factor_is_10():
    hashed = PasswordHasher().hash("password123")
    assert hashed.split("$")[2] == "10"


def test_hash_rejects_non_string(hasher):
    with pytest.raises(HashingError):
        hasher.hash(None)


def test_verify_malformed_hash_raises_comparison_error(hasher):
    """A damaged stored hash is an internal failure, distinct from a mismatch."""
    with pytest.raises(ComparisonError):
        hasher.verify("password123", "not-a-bcrypt-hash")


def test_verify_dummy_returns_none(hasher):
    assert hasher.verify_dummy("anything") is None


def test_verify_dummy_matches_verify_on_bad_input(hasher):
    stored = hasher.hash("password123")
    with pytest.raises(ComparisonError):
        hasher.verify(None, stored)
    with pytest.raises(ComparisonError):
        hasher.verify_dummy(None)
