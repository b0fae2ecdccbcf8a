"""
auth/exceptions.py -- Exception hierarchy for the authentication flow.

Exception Hierarchy:
    DatifyError (base)
    ├── DuplicateIdentity     -- email or username already registered
    ├── InvalidCredentials    -- unknown email OR wrong password (merged)
    ├── Unauthorized          -- missing/invalid/expired/superseded token (merged)
    ├── HashingError          -- bcrypt failed to hash
    ├── ComparisonError       -- bcrypt failed to compare (not the same as "no match")
    ├── RateLimited           -- client exceeded its request window
    └── ConfigurationError    -- signing secret missing

The merged messages are deliberate: callers must not learn which check
failed. api/main.py maps each class to its HTTP status.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class DatifyError(Exception):
    """Base exception for all Datify errors.

    Attributes:
        message: Human-readable, client-safe error description.
    """

    message = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class DuplicateIdentity(DatifyError):
    message = "Email or username already exists"


class InvalidCredentials(DatifyError):
    message = "Invalid email or password"


class Unauthorized(DatifyError):
    message = "Unauthorized"


class HashingError(DatifyError):
    message = "Error hashing password"


class ComparisonError(DatifyError):
    message = "Error comparing passwords"


class RateLimited(DatifyError):
    """Raised when a client key exceeds its fixed-window quota.

    retry_after is the number of whole seconds until the window resets.
    """

    message = "Too many requests, please try again later"

    def __init__(self, key: str, retry_after: int = 0) -> None:
        super().__init__()
        self.key = key
        self.retry_after = retry_after


class ConfigurationError(DatifyError):
    """Raised when a required setting is absent. Fatal at startup."""

    def __init__(self, setting_name: str, issue: str) -> None:
        super().__init__(f"Configuration error for '{setting_name}': {issue}")
        self.setting_name = setting_name
