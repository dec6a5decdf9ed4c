"""Shared fixtures: in-memory SQLite schema, reference data and an API client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.database import build_engine, get_db
from backend.app.main import app
from backend.app.models.generated import (
    Base,
    Branches,
    Facilities,
    Packages,
    Rooms,
    SlotTypes,
    Staff,
    StudentLevels,
    StudentSubscriptions,
    Students,
    Timeframes,
    t_package_slot_types,
)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db) -> SimpleNamespace:
    """Two branches with rooms, staff, catalogs and one subscribed student."""
    db.add_all([
        Branches(id="branch-1", name="Central"),
        Branches(id="branch-2", name="Riverside"),
        Facilities(id="fac-1", name="Ground floor"),
        Timeframes(id="tf-morning", name="Morning", start_time="08:00", end_time="10:00"),
        Timeframes(id="tf-afternoon", name="Afternoon", start_time="14:00", end_time="16:00"),
        SlotTypes(id="type-play", name="Playgroup"),
        SlotTypes(id="type-nap", name="Nap time"),
        StudentLevels(id="level-toddler", name="Toddler"),
        StudentLevels(id="level-infant", name="Infant"),
    ])
    db.flush()
    db.add_all([
        Rooms(id="room-a", branch_id="branch-1", facility_id="fac-1", name="Room A", capacity=12),
        Rooms(id="room-b", branch_id="branch-1", name="Room B", capacity=8),
        Rooms(id="room-c", branch_id="branch-2", name="Room C", capacity=10),
        Staff(id="staff-alice", branch_id="branch-1", full_name="Alice Tran", email="alice@example.com"),
        Staff(id="staff-bob", branch_id="branch-1", full_name="Bob Nguyen"),
        Staff(id="staff-cara", branch_id="branch-1", full_name="Cara Le"),
        Staff(id="staff-dan", branch_id="branch-2", full_name="Dan Pham"),
        Students(
            id="student-1",
            branch_id="branch-1",
            student_level_id="level-toddler",
            full_name="Minh Vo",
        ),
        Packages(id="pkg-play", branch_id="branch-1", name="Play package"),
    ])
    db.flush()
    db.execute(t_package_slot_types.insert().values(package_id="pkg-play", slot_type_id="type-play"))
    db.add(StudentSubscriptions(
        id="sub-1",
        student_id="student-1",
        package_id="pkg-play",
        status="Active",
        start_date="2025-01-01",
        end_date="2025-12-31",
    ))
    db.commit()

    return SimpleNamespace(
        branch="branch-1",
        other_branch="branch-2",
        timeframe="tf-morning",
        late_timeframe="tf-afternoon",
        slot_type="type-play",
        other_slot_type="type-nap",
        level="level-toddler",
        other_level="level-infant",
        room_a="room-a",
        room_b="room-b",
        foreign_room="room-c",
        alice="staff-alice",
        bob="staff-bob",
        cara="staff-cara",
        foreign_staff="staff-dan",
        student="student-1",
    )


@pytest.fixture
def client(session_factory, seed):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def redis_double():
    """MagicMock standing in for redis.Redis, backed by a dict."""
    data: dict[str, str] = {}
    client = MagicMock()
    client.setex.side_effect = lambda key, ttl, value: data.__setitem__(key, value)
    client.get.side_effect = data.get
    client.delete.side_effect = lambda key: data.pop(key, None)
    client.data = data
    return client
