"""
auth/passwords.py -- bcrypt password hashing and verification.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Failures of the primitive are surfaced, not swallowed:
  hash()   -> HashingError    (e.g. input over 72 bytes, NUL bytes)
  verify() -> ComparisonError (e.g. stored value is not a bcrypt hash)
A ComparisonError is NOT a mismatch. Callers must not treat it as "wrong
password" -- it means the stored record is damaged.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.exceptions import ComparisonError, HashingError

logger = logging.getLogger("datify.auth")

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Salted one-way hashing with a fixed bcrypt cost factor.

    Usage:
        hasher = PasswordHasher()
        stored = hasher.hash("password123")
        hasher.verify("password123", stored)  # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        # Timing equalization dummy hash. Computed once per hasher so the
        # first failed login is not measurably slower than later ones.
        self._dummy_hash = self.hash("datify_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the plaintext password."""
        if not isinstance(plain, str):
            raise HashingError()
        try:
            return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError) as exc:
            logger.warning("bcrypt hash failed: %s", exc)
            raise HashingError() from exc

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext matches the hash.

        bcrypt.checkpw does its own constant-time compare of the derived hash.
        """
        if not isinstance(plain, str) or not isinstance(hashed, str):
            raise ComparisonError()
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            logger.warning("bcrypt compare failed: %s", exc)
            raise ComparisonError() from exc

    def verify_dummy(self, plain: str) -> None:
        """Burn one bcrypt compare against the dummy hash.

        Called when the account does not exist so response time does not
        reveal whether an email is registered. The dummy hash is well formed,
        so a ComparisonError here comes from the input and is raised exactly
        as verify() would raise it for a real account.
        """
        self.verify(plain, self._dummy_hash)
