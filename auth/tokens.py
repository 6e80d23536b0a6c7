"""
auth/tokens.py -- Audience-bound JWT issue and verification.

JWT: python-jose with HS256. Each audience ("user", "admin") has its own
signing secret and its own aud claim, so a token minted for one audience
fails verification under the other on both counts.

Verification outcome mapping:
  absent / not a JWT at all          -> AccountError(UNAUTHENTICATED)
  bad signature, wrong aud, expired,
  or missing identity claims         -> AccountError(FORBIDDEN)

Layer rule: no imports from api/ or accounts/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import Audience, TokenClaims
from core.errors import AccountError, ErrorKind

_ALGORITHM = "HS256"


class TokenSigner:
    """Issues and verifies bearer tokens for the two audiences.

    expire_seconds=0 issues tokens without an exp claim.
    """

    def __init__(self, user_secret: str, admin_secret: str, expire_seconds: int = 0) -> None:
        self._secrets = {Audience.USER: user_secret, Audience.ADMIN: admin_secret}
        self.expire_seconds = expire_seconds

    def issue(self, claims: TokenClaims, audience: Audience) -> str:
        """Encode a signed JWT carrying name and email for the given audience."""
        now = datetime.now(timezone.utc)
        payload = {
            "name": claims.name,
            "email": claims.email,
            "aud": audience.value,
            "iat": now,
        }
        if self.expire_seconds > 0:
            payload["exp"] = now + timedelta(seconds=self.expire_seconds)
        return jwt.encode(payload, self._secrets[audience], algorithm=_ALGORITHM)

    def verify(self, token: str | None, audience: Audience) -> TokenClaims:
        """Decode and verify a JWT under the given audience's key.

        Raises AccountError; never returns a partially trusted payload.
        """
        if not token:
            raise AccountError(ErrorKind.UNAUTHENTICATED, "Authentication required.")
        try:
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise AccountError(ErrorKind.UNAUTHENTICATED, "Malformed bearer token.") from exc

        try:
            payload = jwt.decode(
                token,
                self._secrets[audience],
                algorithms=[_ALGORITHM],
                audience=audience.value,
            )
        except JWTError as exc:
            raise AccountError(ErrorKind.FORBIDDEN, "Invalid token for this resource.") from exc

        name = payload.get("name")
        email = payload.get("email")
        if not isinstance(name, str) or not isinstance(email, str):
            raise AccountError(ErrorKind.FORBIDDEN, "Token is missing identity claims.")
        return TokenClaims(name=name, email=email)
