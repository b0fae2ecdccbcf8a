"""
auth/gateway.py -- Registration, login and protected-resource access.

AuthGateway holds no request state; it wires the UserStore, PasswordHasher
and TokenService together. Each operation either returns its result or
raises one of the auth.exceptions classes.

Single active token per user:
  Every issuance goes through reissue_token(), which stores the new token as
  the user's only current token. access_protected_resource() requires the
  presented token to be that stored value, so any earlier token -- even one
  with a valid signature and unexpired -- is rejected once superseded.

Information hiding:
  InvalidCredentials is raised for both "no such email" and "wrong
  password"; the unknown-email branch still runs a bcrypt compare so timing
  does not tell them apart. Unauthorized covers every dashboard failure.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.exceptions import DuplicateIdentity, InvalidCredentials, Unauthorized
from auth.models import TokenClaims, User
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("datify.auth")

_BEARER_SCHEME = "bearer"


def parse_authorization(header: str | None) -> str | None:
    """Extract the token from an Authorization header value.

    "Bearer <token>" (scheme case-insensitive) yields <token>. Any other
    non-empty value is taken whole as the token; it will then fail
    verification like any other bad token. Returns None when there is
    nothing to verify.
    """
    if not header:
        return None
    value = header.strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == _BEARER_SCHEME:
        value = rest.strip()
    return value or None


class AuthGateway:
    """Orchestrates the authentication flow over its three collaborators."""

    def __init__(self, store: UserStore, hasher: PasswordHasher, tokens: TokenService) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def register(self, username: str, email: str, password: str) -> str:
        """Create an account and return its first token.

        Raises DuplicateIdentity if the email or the username is taken,
        whether found up front or lost to a concurrent insert.
        """
        if self.store.find_by_email_or_username(email, username) is not None:
            raise DuplicateIdentity()

        hashed = self.hasher.hash(password)
        token = self.tokens.issue(TokenClaims(email=email, username=username))
        try:
            self.store.insert_user(User(username=username, email=email, hashed_password=hashed, token=token))
        except IntegrityError as exc:
            raise DuplicateIdentity() from exc

        logger.info("Registered user %s", username)
        return token

    def login(self, email: str, password: str) -> str:
        """Verify credentials and return a freshly issued token."""
        user = self.store.find_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return early before running bcrypt
            self.hasher.verify_dummy(password)
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.hashed_password):
            raise InvalidCredentials()
        return self.reissue_token(user)

    def reissue_token(self, user: User) -> str:
        """Issue a new token for user and make it the only one accepted.

        All tokens previously issued to the user stop working on return.
        """
        token = self.tokens.issue(TokenClaims(email=user.email, username=user.username))
        if not self.store.update_token(user.email, token):
            # The account disappeared between lookup and update.
            raise InvalidCredentials()
        return token

    def access_protected_resource(self, authorization: str | None) -> User:
        """Return the owner of the presented token or raise Unauthorized."""
        token = parse_authorization(authorization)
        if token is None:
            raise Unauthorized()

        verification = self.tokens.verify(token)
        if not verification.valid:
            logger.debug("Dashboard access denied: token %s", verification.reason)
            raise Unauthorized()

        user = self.store.find_by_token(token)
        if user is None:
            logger.debug("Dashboard access denied: token superseded")
            raise Unauthorized()
        return user
