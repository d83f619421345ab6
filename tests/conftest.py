"""
tests/conftest.py -- Shared test fixtures for the listing service.

This module provides:
  - make_test_db(): an isolated named shared-memory SQLite Database
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - db / user_store / listing_store: fresh stores for unit tests
  - api_client: TestClient with an admin JWT for API integration tests
  - listing_factory: make_listing(), a Listing with valid defaults for seeding

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Environment must be set before any core/auth import so get_settings() sees
DEBUG, a fixed JWT secret, cheap bcrypt rounds and both shared secrets.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any auth/core import; get_settings() is cached on
# first call.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789abcdef0123456789")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ADMIN_SETUP_TOKEN", "test-admin-setup-token-0123456789")
os.environ.setdefault("CRON_SCRAPE_TOKEN", "test-cron-token-0123456789")
os.environ.setdefault("SECURE_COOKIES", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_session_token, hash_password
from core.db import Database
from listings.models import Listing
from listings.store import ListingStore

ADMIN_EMAIL = "testadmin@example.com"
ADMIN_PASSWORD = "testpass12345"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_db(prefix: str = "test") -> Database:
    """Return a Database backed by a fresh named shared-memory SQLite instance.

    The uuid suffix keeps every fixture invocation isolated from the others.
    """
    return Database(f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")


def make_listing(**overrides) -> Listing:
    """Build a Listing with valid defaults; any field can be overridden."""
    fields = {
        "title": "Staff Nurse Recruitment",
        "slug": f"listing-{uuid.uuid4().hex[:8]}",
        "department": "Health Services",
        "state": "Kerala",
        "qualification": "B.Sc Nursing",
        "apply_link": "https://example.gov.in/apply",
        "type": "job",
    }
    fields.update(overrides)
    return Listing(**fields)


def _patch_lifespan(db: Database, user_store: UserStore, listing_store: ListingStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.db = db
        app.state.user_store = user_store
        app.state.listing_store = listing_store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit-test fixtures -- one fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def db() -> Generator[Database, None, None]:
    database = make_test_db("unit")
    yield database
    database.close()


@pytest.fixture
def listing_factory():
    return make_listing


@pytest.fixture
def user_store(db: Database) -> UserStore:
    return UserStore(db)


@pytest.fixture
def listing_store(db: Database) -> ListingStore:
    return ListingStore(db)


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, admin_token, admin_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use an isolated in-memory store.
    The admin user is created before the client starts and the JWT is
    meant for Authorization: Bearer headers. Stores are reachable as
    client.app.state.user_store / client.app.state.listing_store.
    """
    database = make_test_db("api")
    users = UserStore(database)
    listings = ListingStore(database)

    admin = User(
        name="Test Admin",
        email=ADMIN_EMAIL,
        hashed_password=hash_password(ADMIN_PASSWORD),
        role="admin",
    )
    uid = users.create_user(admin)
    token = create_session_token(uid, ADMIN_EMAIL, "admin", name="Test Admin", expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(database, users, listings)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    database.close()


@pytest.fixture
def admin_headers(api_client: tuple[TestClient, str, int]) -> dict[str, str]:
    _client, token, _uid = api_client
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    """Bearer headers for a valid non-admin session."""
    token = create_session_token(424242, "reader@example.com", "user", expire_seconds=3600)
    return {"Authorization": f"Bearer {token}"}
