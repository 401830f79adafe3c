"""Shared test fixtures for the ProcTrack backend test suite.

Tests run against a SQLite file in a temporary directory. Every test starts
from freshly created tables, so tests never see each other's data.
``client`` enters the application lifespan, which seeds the primordial
admin and primes the read model.
"""

import os
import tempfile

# Force auth off and point at a throwaway database before any app imports.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="proctrack-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    "sqlite:///" + os.path.join(_TEST_DB_DIR, "proctrack_test.db"),
)
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["ENVIRONMENT"] = "development"
os.environ["EMAIL_DOMAIN"] = "gmail.com"

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from proctrack import models
from proctrack.core.auth import AuthContext
from proctrack.core.change_feed import ChangeFeed
from proctrack.core.config import settings
from proctrack.core.token_factory import create_token
from proctrack.database import Base, SessionLocal, engine, get_db
from proctrack.main import app
from proctrack.middleware.request_context import _rate_buckets
from proctrack.services.read_model import ReadModel


@pytest.fixture(autouse=True)
def _fresh_tables():
    """Drop and recreate every table before each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    _rate_buckets.clear()  # Reset rate limiter so tests don't hit 429
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def feed():
    return ChangeFeed()


@pytest.fixture()
def read_model(feed):
    model = ReadModel()
    model.attach(feed)
    return model


@pytest.fixture()
def actor() -> AuthContext:
    return AuthContext(user_id="u-clerk", role="user", email="clerk@gmail.com", name="Records Clerk")


@pytest.fixture()
def tree(db):
    """One shelf, one cabinet, two folders; plus a second shelf/cabinet/folder."""
    db.add_all([
        models.Shelf(id="s1", code="S1", name="Shelf 1"),
        models.Shelf(id="s2", code="S2", name="Shelf 2"),
    ])
    db.flush()
    db.add_all([
        models.Cabinet(id="c1", code="C1", name="Cabinet 1", shelf_id="s1"),
        models.Cabinet(id="c2", code="C2", name="Cabinet 2", shelf_id="s2"),
    ])
    db.flush()
    db.add_all([
        models.Folder(id="f1", code="F1", name="Folder 1", cabinet_id="c1", color="#22c55e"),
        models.Folder(id="f2", code="F2", name="Folder 2", cabinet_id="c1"),
        models.Folder(id="f3", code="F3", name="Folder 3", cabinet_id="c2"),
    ])
    db.commit()
    return SimpleNamespace(shelf_id="s1", cabinet_id="c1", folder_id="f1", folder2_id="f2", other_folder_id="f3")


@pytest.fixture()
def auth_headers() -> dict:
    """Bearer header for a token signed with the configured secret."""
    token = create_token(
        subject="test-user",
        role="admin",
        secret=settings.jwt_secret_key,
    )
    return {"Authorization": f"Bearer {token}"}


def make_location_tree(client, suffix: str = "1") -> dict:
    """Create shelf -> cabinet -> folder through the API and return the ids."""
    shelf = client.post(
        "/api/locations/shelves", json={"code": f"S{suffix}", "name": f"Shelf {suffix}"}
    ).json()
    cabinet = client.post(
        "/api/locations/cabinets",
        json={"code": f"C{suffix}", "name": f"Cabinet {suffix}", "shelf_id": shelf["id"]},
    ).json()
    folder = client.post(
        "/api/locations/folders",
        json={"code": f"F{suffix}", "name": f"Folder {suffix}", "cabinet_id": cabinet["id"]},
    ).json()
    return {"shelf_id": shelf["id"], "cabinet_id": cabinet["id"], "folder_id": folder["id"]}


def make_record(
    location: dict,
    pr_number: str = "pr-2024-001",
    description: str = "Office chairs",
    **overrides,
) -> dict:
    """Factory for record creation payloads."""
    payload = {
        "pr_number": pr_number,
        "description": description,
        "urgency_level": "medium",
        "tags": ["furniture"],
        **location,
    }
    payload.update(overrides)
    return payload
