"""
auth/models.py -- Domain dataclasses for account and credential entities.

Pattern: Data class (pure data container, zero logic). The store and the
account service do the work; api/models.py owns the HTTP shapes.

Layer rule: no imports from api/ or accounts/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Audience(str, Enum):
    """Token audience. Each value is a separate signing context."""

    USER = "user"
    ADMIN = "admin"


@dataclass
class User:
    """One registered account.

    password_hash is always a bcrypt hash -- the plaintext never reaches the
    store. id and created_at are None until the directory assigns them.
    """

    name: str
    email: str
    password_hash: str
    id: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Identity embedded in a signed bearer token."""

    name: str
    email: str
