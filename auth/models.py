"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the
gateway do the work; these only own the shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered account.

    email is the login identifier; username is the display name. Both are
    unique. token holds the most recently issued token -- the only one the
    dashboard accepts. It is None until the first issuance is persisted.
    """

    username: str
    email: str
    hashed_password: str
    token: str | None = None
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried inside a signed token."""

    email: str
    username: str
    expires_at: datetime | None = None


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of TokenService.verify().

    valid=True carries claims; valid=False carries reason ("invalid" or
    "expired").
    """

    valid: bool
    claims: TokenClaims | None = None
    reason: str | None = None
