"""
tests/conftest.py -- Shared test fixtures for Arondight integration and unit tests.

This module provides:
  - make_test_store(): isolated named shared-memory SQLite AccountStore
  - _patch_lifespan(): wires a test store and issuer into app.state, bypassing real startup
  - store / issuer: per-test store and a TokenIssuer bound to TEST_SECRET
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because both TestClient and the service layer run store calls in a thread
pool. Plain ':memory:' DBs are per-connection and would present a blank
schema to each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

SECRET_KEY and BCRYPT_ROUNDS must be set before any api/auth/core import:
api/main.py reads settings at import time, and the production bcrypt cost
(12) would make every hashing test take a quarter of a second.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters-long"

# CRITICAL: Set before any project import so get_settings() validates.
os.environ.setdefault("SECRET_KEY", TEST_SECRET)
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.store import AccountStore
from auth.tokens import TokenIssuer

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_store(db_suffix: str | None = None) -> AccountStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so tests don't share
                   state. A random one is generated when omitted.
    """
    suffix = db_suffix or uuid.uuid4().hex
    return AccountStore(db_url=f"sqlite:///file:test_accounts_{suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: AccountStore, issuer: TokenIssuer):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-created test store and issuer into app.state so TestClient
    routes see an isolated test DB rather than the production database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = store
        app.state.token_issuer = issuer
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = make_test_store()
    yield s
    s.close()


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(os.environ["SECRET_KEY"], expire_seconds=3600)


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, AccountStore, TokenIssuer], None, None]:
    """Yield (client, store, issuer) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use an isolated in-memory store.
    Tests share the store within a module, so each test registers accounts
    under its own unique email (see the unique_email fixture).
    """
    store = make_test_store()
    issuer = TokenIssuer(os.environ["SECRET_KEY"], expire_seconds=60 * 60 * 24)

    app.router.lifespan_context = _patch_lifespan(store, issuer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store, issuer

    store.close()


@pytest.fixture
def unique_email():
    """Return a factory for emails no other test has used."""

    def _make(prefix: str = "user") -> str:
        return f"{prefix}-{uuid.uuid4().hex[:10]}@x.com"

    return _make
