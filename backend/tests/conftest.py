"""Pytest fixtures — a fresh SQLite database file per test."""
from datetime import datetime, timedelta, timezone
import pytest
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from parish.auth import Actor, Role
from parish.database import Base, build_engine, get_db
from parish.main import app
from parish.models.mass import Mass
from parish.notifications import hub
from parish.services import mass_service

# Import all models so they register with Base.metadata
from parish.models.reservation import Reservation      # noqa: F401
from parish.models.activity import ActivityRecord      # noqa: F401

ADMIN = Actor(user_id="admin-1", role=Role.admin, name="Father Admin")
PARISHIONER = Actor(user_id="user-1", name="Maria")
OTHER_PARISHIONER = Actor(user_id="user-2", name="Jose")


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine (WAL, foreign keys) for each test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def inbox():
    """Subscribe recording callbacks to the shared hub; removed after the test.

    Usage: ``messages = inbox("user-1", "PARISHIONER")``.
    """
    tokens = []

    def _subscribe(user_id: str, role: str) -> list:
        messages = []
        tokens.append(hub.subscribe(user_id, role, messages.append))
        return messages

    yield _subscribe
    for token in tokens:
        hub.unsubscribe(token)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def headers(actor: Actor) -> dict:
    """Identity headers as forwarded by the gateway."""
    result = {"X-User-Id": actor.user_id, "X-User-Role": actor.role.value}
    if actor.name:
        result["X-User-Name"] = actor.name
    return result


def in_days(days: float) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


def create_test_mass(db, intention_slots: int = 3, thanksgiving_slots: int = 2,
                     title: str = "Sunday Mass", days_ahead: float = 7) -> Mass:
    """Helper — create a mass through the service layer."""
    return mass_service.create_mass(
        db,
        actor=ADMIN,
        title=title,
        scheduled_at=in_days(days_ahead),
        location="St. Joseph Parish",
        intention_slots=intention_slots,
        thanksgiving_slots=thanksgiving_slots,
    )


def create_test_mass_via_api(client: TestClient, intention_slots: int = 3,
                             thanksgiving_slots: int = 2, title: str = "Sunday Mass",
                             days_ahead: float = 7) -> dict:
    """Helper — POST /api/masses and return response JSON."""
    resp = client.post("/api/masses/", headers=headers(ADMIN), json={
        "title": title,
        "scheduled_at": in_days(days_ahead).isoformat(),
        "location": "St. Joseph Parish",
        "intention_slots": intention_slots,
        "thanksgiving_slots": thanksgiving_slots,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()
