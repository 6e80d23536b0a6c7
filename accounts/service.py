"""
accounts/service.py -- Account policy: registration, login, and token-gated CRUD.

This is the only module with business rules. It composes three collaborators:
  UserStore      -- the user directory (sole source of truth, sole arbiter of
                    email uniqueness)
  PasswordHasher -- bcrypt hashing and verification
  TokenSigner    -- audience-bound JWT issue and verification

Authorization rules:
  list_all           admin-audience token
  get_by_id, delete  any valid user-audience token (no ownership check)
  update             user-audience token whose email claim equals the email
                     in the update payload (checked against the payload, not
                     the stored record)

The service is stateless between calls. Every failure leaves as an
AccountError; SQLAlchemy errors from the directory are classified here and
never escape raw.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import Audience, TokenClaims, User
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenSigner
from core.errors import AccountError, ErrorKind

logger = logging.getLogger("accounts.service")


@contextmanager
def _directory(action: str) -> Iterator[None]:
    """Classify directory failures raised inside the block."""
    try:
        yield
    except IntegrityError as exc:
        raise AccountError(ErrorKind.CONFLICT, "Duplicate email") from exc
    except SQLAlchemyError as exc:
        logger.exception("Directory failure during %s", action)
        raise AccountError(ErrorKind.INTERNAL, "Internal Server Error") from exc


class AccountService:
    def __init__(self, store: UserStore, hasher: PasswordHasher, signer: TokenSigner) -> None:
        self.store = store
        self.hasher = hasher
        self.signer = signer

    # ------------------------------------------------------------------
    # Public endpoints
    # ------------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> User:
        """Hash the password and create the account. Duplicate email -> CONFLICT."""
        user = User(name=name, email=email, password_hash=self.hasher.hash(password))
        with _directory("register"):
            user.id = self.store.create_user(user)
        logger.info("Registered user %s", user.id)
        return user

    def login(self, email: str, password: str) -> str:
        """Return a user-audience token for valid credentials.

        Both failure paths raise INVALID_CREDENTIALS and both run one bcrypt
        check. reason tells them apart for the transport's legacy bodies only.
        """
        with _directory("login"):
            user = self.store.get_by_email(email)
        if user is None:
            self.hasher.verify_dummy(password)
            logger.info("Login rejected: unknown email")
            raise AccountError(ErrorKind.INVALID_CREDENTIALS, "Invalid Login", reason="unknown_email")
        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login rejected for user %s: password mismatch", user.id)
            raise AccountError(ErrorKind.INVALID_CREDENTIALS, "Invalid Login", reason="password_mismatch")
        return self.signer.issue(TokenClaims(name=user.name, email=user.email), Audience.USER)

    # ------------------------------------------------------------------
    # Token-gated endpoints
    # ------------------------------------------------------------------

    def authenticate(self, token: str | None, audience: Audience) -> TokenClaims:
        return self.signer.verify(token, audience)

    def list_all(self, token: str | None) -> list[User]:
        self.authenticate(token, Audience.ADMIN)
        with _directory("list_all"):
            return self.store.list_users()

    def get_by_id(self, token: str | None, user_id: str) -> User:
        self.authenticate(token, Audience.USER)
        with _directory("get_by_id"):
            user = self.store.get_by_id(user_id)
        if user is None:
            raise AccountError(ErrorKind.NOT_FOUND, "User not found")
        return user

    def update(self, token: str | None, user_id: str, fields: dict) -> User:
        """Apply a partial update after the ownership check.

        fields must include "email"; it is both the ownership proof and the new
        stored email. A "password" entry is re-hashed before it is persisted.
        """
        caller = self.authenticate(token, Audience.USER)
        if caller.email != fields.get("email"):
            logger.warning("Update of user %s refused: token email does not match payload", user_id)
            raise AccountError(ErrorKind.FORBIDDEN, "You are not allowed to update other users")

        changes = {k: v for k, v in fields.items() if k in ("name", "email") and v is not None}
        if fields.get("password") is not None:
            changes["password_hash"] = self.hasher.hash(fields["password"])

        with _directory("update"):
            user = self.store.update_user(user_id, **changes)
        if user is None:
            raise AccountError(ErrorKind.NOT_FOUND, "User not found")
        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(changes)))
        return user

    def delete(self, token: str | None, user_id: str) -> User:
        self.authenticate(token, Audience.USER)
        with _directory("delete"):
            user = self.store.delete_user(user_id)
        if user is None:
            raise AccountError(ErrorKind.NOT_FOUND, "User not found")
        logger.info("Deleted user %s", user_id)
        return user
