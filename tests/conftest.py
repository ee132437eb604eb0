import os

# Settings are read at import time, so they must be in place before eventease loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEND_EMAILS"] = "false"
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")

import asyncio
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eventease.controller.event_controller import create_event_controller
from eventease.database import Base, get_db, server_timestamp
from eventease.main import app
from eventease.session import SessionPrincipal, profile_cache


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _empty_profile_cache():
    profile_cache.clear()
    yield
    profile_cache.clear()


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_principal(uid, role="participant"):
    return SessionPrincipal(
        uid=uid,
        email=f"{uid}@example.com",
        display_name=uid.replace("-", " ").title(),
        role=role,
        token=f"token-{uid}",
    )


@pytest.fixture
def organizer():
    return make_principal("organizer-1", role="organizer")


@pytest.fixture
def participant():
    return make_principal("participant-1")


def event_document(organizer_id="organizer-1", **overrides):
    now = server_timestamp()
    document = {
        "title": "PyCon Nairobi",
        "description": "Talks, sprints and a hallway track",
        "start_date": now + timedelta(days=7),
        "end_date": now + timedelta(days=7, hours=8),
        "location": {
            "address": "1 Kenyatta Avenue",
            "city": "Nairobi",
            "country": "Kenya",
            "is_virtual": False,
        },
        "organizer_id": organizer_id,
        "organizer_name": "Organizer 1",
        "capacity": 10,
        "price": 0,
        "currency": "USD",
        "type": {"id": "conference", "name": "Conference", "color": "#3B82F6"},
        "tags": ["python", "community"],
        "is_published": True,
        "registration_deadline": now + timedelta(days=6),
    }
    document.update(overrides)
    return document


@pytest.fixture
def make_event():
    def _make_event(db, **overrides):
        return asyncio.run(create_event_controller(db, event_document(**overrides)))
    return _make_event


@pytest.fixture
def principal_factory():
    return make_principal


@pytest.fixture
def event_data():
    return event_document
