"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Gateway and route code never touches SQL directly.

Every lookup has zero-or-one row semantics. The UNIQUE constraints on
username and email are the final arbiter for concurrent registrations: the
second writer gets sqlalchemy.exc.IntegrityError from insert_user(), which
the gateway translates into DuplicateIdentity.

Security:
  All queries use bound parameters. No f-strings in SQL.

DB URL: core.config.Settings.resolved_database_url() -- Postgres in
deployment, a local SQLite file otherwise.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, or_, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from auth.models import User

logger = logging.getLogger("datify.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "user",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt hash, never plaintext
    Column("token", Text, index=True),  # latest issued token; NULL before first issue
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///datify.db")
        store.insert_user(User(username="ada", email="ada@example.com", hashed_password=h, token=t))
        user = store.find_by_email("ada@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def check_connection(self) -> str:
        """Return "connected" if a trivial query succeeds, else "disconnected"."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error("Database connection error: %s", exc)
            return "disconnected"
        return "connected"

    def find_by_email_or_username(self, email: str, username: str) -> User | None:
        """Return any user holding this email or this username."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where(or_(_users.c.email == email, _users.c.username == username)).limit(1)
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def insert_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email or username is
        already taken -- including by a concurrent request that won the race.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=user.email,
                    password=user.hashed_password,
                    token=user.token,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_token(self, email: str, token: str) -> bool:
        """Replace the stored token for email. Returns False if no such user."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.email == email).values(token=token))
            conn.commit()
        return result.rowcount > 0

    def find_by_token(self, token: str) -> User | None:
        """Return the user whose current token is exactly this value."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.token == token)).fetchone()
        return _row_to_user(row) if row is not None else None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.password,
        token=row.token,
        created_at=row.created_at,
    )
