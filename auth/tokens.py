"""
auth/tokens.py -- Signed, time-bound identity tokens.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the process-wide secret
       and carry email, username, iat, exp and a random jti. The jti makes two
       tokens issued to the same user in the same second distinct, so a
       re-issued token really does supersede the stored one.

  Verification order: signature and structure first, then expiry. jose's own
       exp check is disabled because it accepts exp == now; here a token whose
       exp is at or before the current instant is expired.

  Tamper detection: base64url decoding ignores the spare low bits of the last
       signature character, so a token with an altered final character can
       decode to the same signature bytes. The signature segment must
       re-encode to exactly what was presented, otherwise the token is
       rejected as invalid.

  Secret: injected at construction. An empty secret raises ConfigurationError
       -- there is no code path that signs with an empty key.

Layer rule: no imports from api/. core/ is not needed here; the secret is
passed in by the application assembly.
"""

from __future__ import annotations

import binascii
import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.exceptions import ConfigurationError
from auth.models import TokenClaims, TokenVerification

logger = logging.getLogger("datify.auth")

_ALGORITHM = "HS256"

DEFAULT_TTL = timedelta(days=7)

REASON_INVALID = "invalid"
REASON_EXPIRED = "expired"


def _has_canonical_signature(token: str) -> bool:
    """Return True if the token has three segments and a canonical signature segment."""
    parts = token.split(".")
    if len(parts) != 3 or not parts[2]:
        return False
    try:
        raw = base64url_decode(parts[2].encode("ascii"))
    except (ValueError, UnicodeEncodeError, binascii.Error):
        return False
    return base64url_encode(raw).decode("ascii") == parts[2]


class TokenService:
    """Issues and verifies HS256 tokens carrying TokenClaims.

    Usage:
        tokens = TokenService(settings.secret_key)
        raw = tokens.issue(TokenClaims(email="a@example.com", username="a"))
        result = tokens.verify(raw)  # TokenVerification(valid=True, claims=...)
    """

    def __init__(self, secret_key: str, ttl: timedelta = DEFAULT_TTL) -> None:
        if not secret_key:
            raise ConfigurationError("DATIFY_SECRET", "a signing secret is required to issue tokens")
        self._secret_key = secret_key
        self.ttl = ttl

    def issue(self, claims: TokenClaims, ttl: timedelta | None = None) -> str:
        """Encode claims plus an expiry of now + ttl and sign them.

        Args:
            claims: Identity to embed. claims.expires_at is ignored; the
                    expiry is always derived from the issue time.
            ttl:    Validity window. Defaults to the service ttl (7 days).
        """
        issued_at = datetime.now(timezone.utc)
        expire = issued_at + (ttl if ttl is not None else self.ttl)
        payload = {
            "email": claims.email,
            "username": claims.username,
            "iat": int(issued_at.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": secrets.token_urlsafe(12),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenVerification:
        """Check signature integrity, then expiry.

        Never raises for bad input: any failure becomes valid=False with a
        reason of "invalid" or "expired".
        """
        if not isinstance(token, str) or not _has_canonical_signature(token):
            return TokenVerification(valid=False, reason=REASON_INVALID)
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            return TokenVerification(valid=False, reason=REASON_INVALID)

        exp = payload.get("exp")
        email = payload.get("email")
        username = payload.get("username")
        if not isinstance(exp, (int, float)) or not isinstance(email, str) or not isinstance(username, str):
            return TokenVerification(valid=False, reason=REASON_INVALID)

        if exp <= datetime.now(timezone.utc).timestamp():
            return TokenVerification(valid=False, reason=REASON_EXPIRED)

        claims = TokenClaims(
            email=email,
            username=username,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
        return TokenVerification(valid=True, claims=claims)
