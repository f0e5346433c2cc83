"""
Shared fixtures.

The database URL is read when `signage.db` is imported, so it is pointed at a
throwaway SQLite file before any signage module loads.
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="signage-tests-")
os.environ["SIGNAGE_DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'signage-test.db')}"

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from signage.db import Base, SessionLocal, engine, init_db  # noqa: E402
from signage.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema() -> Generator[None, None, None]:
    init_db()
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def bus(client):
    return client.app.state.bus


@pytest.fixture
def layout(client) -> dict:
    """A venue with one space, ready for screens."""
    venue = client.post("/venues", json={"name": "Harbour Hall"}).json()
    space = client.post("/spaces", json={"name": "Foyer", "venue_id": venue["id"]}).json()
    return {"venue_id": venue["id"], "space_id": space["id"]}
