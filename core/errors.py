"""
core/errors.py -- Failure taxonomy shared by the account service and the API.

Every expected failure in the policy core is an AccountError carrying one
ErrorKind. The API layer maps each kind to a status code through a single
table (api.main.STATUS_BY_KIND); nothing downstream inspects messages.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_CREDENTIALS = "invalid_credentials"
    INTERNAL = "internal_error"


class AccountError(Exception):
    """A classified failure raised by the credential and account layers.

    reason is an optional machine-readable refinement of the kind. Login uses
    it ("unknown_email" / "password_mismatch") so the transport can reproduce
    the legacy response bodies; it is never used for authorization decisions.
    """

    def __init__(self, kind: ErrorKind, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.reason = reason

    def __repr__(self) -> str:
        return f"AccountError({self.kind.value!r}, {self.message!r})"
