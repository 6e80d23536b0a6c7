"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

bcrypt only looks at the first 72 bytes of input and current releases refuse
longer passwords. hash() surfaces that as ValueError; the API layer caps the
field (api/models.py) so requests never get that far.
"""

from __future__ import annotations

import bcrypt

MAX_PASSWORD_BYTES = 72
DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Salted bcrypt hashing with a configurable cost factor.

    Usage:
        hasher = PasswordHasher(rounds=10)
        secret = hasher.hash("hunter2")
        hasher.verify("hunter2", secret)   # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
        # Timing equalization: hashed once per hasher so the first unknown-email
        # login is not measurably slower than later ones.
        self._dummy_hash = self.hash("accounts_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password."""
        encoded = plain.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        Malformed or missing hashes and oversize passwords are a mismatch, not
        an error.
        """
        if not isinstance(plain, str) or not isinstance(hashed, str):
            return False
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, plain: str) -> None:
        """Run one bcrypt check against a throwaway hash and discard the result.

        Called when the login email does not exist, so that path costs the same
        as a wrong password.
        """
        self.verify(plain, self._dummy_hash)
