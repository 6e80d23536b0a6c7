"""
auth/store.py -- SQLAlchemy Core persistence for user records (the user directory).

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user is
the mapper. The account service never touches SQL directly.

Uniqueness:
  The UNIQUE constraint on users.email is the only arbiter of duplicate
  registrations. Two concurrent creates with the same email race on the
  insert; exactly one commits and the other raises IntegrityError, which the
  account service turns into a Conflict. The store adds no locking of its own.

Errors:
  SQLAlchemy exceptions propagate unchanged. Classification (Conflict vs
  Internal) is the caller's job.

Layer rule: no imports from api/ or accounts/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import User

logger = logging.getLogger("accounts.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex, assigned in create_user
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

# Columns an update may touch. id and created_at are immutable.
_MUTABLE_FIELDS = frozenset({"name", "email", "password_hash"})


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
        store = UserStore("sqlite:///./accounts.db")
        user_id = store.create_user(User(name="Ada", email="ada@example.com", password_hash=h))
        user = store.get_by_email("ada@example.com")
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

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def create_user(self, user: User) -> str:
        """Insert a new user and return its generated id.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        user_id = uuid.uuid4().hex
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    name=user.name,
                    email=user.email,
                    password_hash=user.password_hash,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        logger.debug("Inserted user %s", user_id)
        return user_id

    def get_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return every user record in directory order."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select()).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user_id: str, **fields) -> User | None:
        """Overwrite the given fields and return the post-update record.

        Accepted fields: name, email, password_hash. Returns None if user_id
        was not found. Raises IntegrityError if the new email belongs to
        another user.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        with self.engine.connect() as conn:
            if fields:
                result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
                if result.rowcount == 0:
                    conn.rollback()
                    return None
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
            conn.commit()
        return _row_to_user(row) if row is not None else None

    def delete_user(self, user_id: str) -> User | None:
        """Permanently delete a user. Returns the removed record, or None if absent.

        The record comes back from the DELETE itself (RETURNING), so of several
        concurrent deletes of one id only the one that removed the row sees it.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_users.delete().where(_users.c.id == user_id).returning(*_users.c)).fetchone()
            conn.commit()
        if row is None:
            return None
        logger.debug("Deleted user %s", user_id)
        return _row_to_user(row)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
