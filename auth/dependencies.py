"""
auth/dependencies.py -- FastAPI Depends() helpers shared by the routes.

bearer_token() only extracts the raw credential from the
"Authorization: Bearer <token>" header. Verification belongs to the account
service, which decides per operation which audience the token must carry.

get_accounts() hands out the AccountService built by create_app(); nothing is
read from module-level state.

Layer rule: auth/dependencies.py may import from fastapi because it is part of
the dependency injection system.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from accounts.service import AccountService


def bearer_token(request: Request) -> str | None:
    """Return the bearer credential, or None if the header is absent or not Bearer."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credential = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credential.strip() or None


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts
