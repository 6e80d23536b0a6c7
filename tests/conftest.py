"""
tests/conftest.py -- Shared fixtures for the account service tests.

This module provides:
  - settings: explicit Settings with fixed secrets, bcrypt cost 4 and rate
    limiting off, pointing at a fresh named in-memory database
  - store / hasher / signer / service: the policy core, unwired from HTTP
  - client: TestClient over create_app() sharing the same store
  - admin_token: an admin-audience token (no HTTP path issues one)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the TestClient fixtures because sync route handlers run in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. Each fixture instance gets a uuid-suffixed name so tests never
see each other's rows.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator

# Set DEBUG before any core import so a stray get_settings() call never
# refuses to start for lack of secrets.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from accounts.service import AccountService
from api.main import create_app
from auth.models import Audience, TokenClaims
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenSigner
from core.config import Settings

USER_SECRET = "user-signing-secret-for-tests-0123456789"
ADMIN_SECRET = "admin-signing-secret-for-tests-0123456789"


def memory_db_url(prefix: str = "accounts") -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def make_settings(**overrides) -> Settings:
    values = {
        "debug": True,
        "user_token_secret": USER_SECRET,
        "admin_token_secret": ADMIN_SECRET,
        "bcrypt_rounds": 4,
        "rate_limit_enabled": False,
        "database_url": memory_db_url(),
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store(settings: Settings) -> Generator[UserStore, None, None]:
    s = UserStore(settings.database_url)
    yield s
    s.close()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def signer() -> TokenSigner:
    return TokenSigner(user_secret=USER_SECRET, admin_secret=ADMIN_SECRET)


@pytest.fixture
def service(store: UserStore, hasher: PasswordHasher, signer: TokenSigner) -> AccountService:
    return AccountService(store=store, hasher=hasher, signer=signer)


@pytest.fixture
def admin_token(signer: TokenSigner) -> str:
    return signer.issue(TokenClaims(name="Root", email="root@example.com"), Audience.ADMIN)


@pytest.fixture
def client(settings: Settings, store: UserStore) -> Generator[TestClient, None, None]:
    """TestClient over a real app wired to the fixture store."""
    app = create_app(settings, store=store)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c
