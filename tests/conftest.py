import os

# Must be set before forkcheck.config is imported
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTO_CREATE_DB"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_PASSCODE"] = "4155"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from forkcheck.config import settings
from forkcheck.db import Base, get_db
from forkcheck.main import app
from forkcheck.models.models import (
    ChecklistQuestion,
    ForkliftUnit,
    QualifiedDriver,
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def default_checklist_settings(monkeypatch):
    monkeypatch.setattr(settings, "question_mode", "global")
    monkeypatch.setattr(settings, "question_assignment_fallback", False)
    monkeypatch.setattr(settings, "badge_gate", "required")
    monkeypatch.setattr(settings, "badge_min_length", 2)
    monkeypatch.setattr(settings, "response_variant", "toggle_comment")
    monkeypatch.setattr(settings, "auto_create_maintenance", False)
    monkeypatch.setattr(settings, "auto_maintenance_priority", "high")


@pytest.fixture
def configure(monkeypatch):
    def _set(**values):
        for key, value in values.items():
            monkeypatch.setattr(settings, key, value)
    return _set


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client):
    r = client.post("/auth/admin/login", json={"passcode": "4155"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def make_unit(db):
    def _make(name="Forklift 1", unit_number="FL-1", is_default=False, is_active=True):
        unit = ForkliftUnit(name=name, unit_number=unit_number, is_default=is_default, is_active=is_active)
        db.add(unit)
        db.commit()
        db.refresh(unit)
        return unit
    return _make


@pytest.fixture
def make_question(db):
    def _make(question_text, sort_order, category="General", is_active=True):
        q = ChecklistQuestion(
            question_text=question_text,
            category=category,
            label=f"Q{sort_order}",
            sort_order=sort_order,
            is_active=is_active,
        )
        db.add(q)
        db.commit()
        db.refresh(q)
        return q
    return _make


@pytest.fixture
def make_driver(db):
    def _make(badge_number, driver_name, is_active=True, **extra):
        d = QualifiedDriver(badge_number=badge_number, driver_name=driver_name, is_active=is_active, **extra)
        db.add(d)
        db.commit()
        db.refresh(d)
        return d
    return _make


@pytest.fixture
def checklist(make_unit, make_question, make_driver):
    """One default unit, three active questions and one authorized driver"""
    unit = make_unit(name="Reach Truck", unit_number="E1", is_default=True)
    questions = [
        make_question("Forks - no cracks, bends, or wear", 1, "Visual Inspection"),
        make_question("Horn - working properly", 2, "Safety Features"),
        make_question("Brakes - responsive", 3, "Operational Check"),
    ]
    driver = make_driver("4455", "J. Smith")
    return unit, questions, driver
