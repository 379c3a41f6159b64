"""Shared fixtures: in-memory SQLite with foreign keys on, plus an API client."""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_DB", "false")
os.environ.setdefault("RATE_LIMIT", "10000/minute")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from parkhub.auth.security import create_access_token, get_password_hash
from parkhub.db import Base, get_db, sqlite_on_connect
from parkhub.main import app
from parkhub.models.models import (
    Activity,
    Amenity,
    Asset,
    Incident,
    Instructor,
    InstructorAssignment,
    Park,
    ParkAmenity,
    ParkDocument,
    ParkEvaluation,
    ParkImage,
    Tree,
    TreeMaintenance,
    User,
    Volunteer,
)
from parkhub.services.profile_images import LRUProfileImageStore, get_profile_image_store


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    event.listen(eng, "connect", sqlite_on_connect)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def image_store() -> LRUProfileImageStore:
    return LRUProfileImageStore(max_entries=8)


@pytest.fixture()
def client(session_factory, image_store):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_profile_image_store] = lambda: image_store
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories (every helper commits: the API shares the same SQLite connection)
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_park(db):
    def _make(**kw) -> Park:
        kw.setdefault("name", "Parque de prueba")
        park = Park(**kw)
        db.add(park)
        db.commit()
        return park

    return _make


@pytest.fixture()
def make_user(db):
    def _make(username: str, email: str, role: str = "user", password: str = "secret-pass", **kw) -> User:
        user = User(
            username=username,
            email=email,
            role=role,
            password_hash=get_password_hash(password),
            **kw,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def make_instructor(db):
    def _make(full_name: str, email: str, created_at: datetime | None = None, **kw) -> Instructor:
        row = Instructor(full_name=full_name, email=email, **kw)
        if created_at is not None:
            row.created_at = created_at
        db.add(row)
        db.commit()
        return row

    return _make


@pytest.fixture()
def make_volunteer(db):
    def _make(full_name: str, email: str, **kw) -> Volunteer:
        row = Volunteer(full_name=full_name, email=email, **kw)
        db.add(row)
        db.commit()
        return row

    return _make


@pytest.fixture()
def populated_park(db, make_park):
    """A park with at least one row in every dependent category."""

    def _make(name: str = "Parque Agua Azul", **kw) -> Park:
        park = make_park(name=name, **kw)
        amenity = db.query(Amenity).filter(Amenity.name == "Baños").first()
        if amenity is None:
            amenity = Amenity(name="Baños", icon="toilet")
            db.add(amenity)
            db.flush()

        trees = [Tree(park_id=park.id, code=f"T{i}", species="Jacaranda") for i in range(3)]
        db.add_all(trees)
        db.flush()
        db.add_all([TreeMaintenance(tree_id=t.id, maintenance_type="poda") for t in trees[:2]])

        instructor = Instructor(full_name=f"Instructor {name}", email=f"instr{park.id}@example.org", preferred_park_id=park.id)
        db.add(instructor)
        db.flush()
        activities = [
            Activity(park_id=park.id, title="Yoga", instructor_id=instructor.id),
            Activity(park_id=park.id, title="Composta"),
        ]
        db.add_all(activities)
        db.flush()
        db.add(InstructorAssignment(instructor_id=instructor.id, park_id=park.id, activity_id=activities[0].id))
        db.add(Incident(park_id=park.id, title="Luminaria dañada"))
        db.add(ParkAmenity(park_id=park.id, amenity_id=amenity.id))
        db.add_all([ParkImage(park_id=park.id, image_url="/a.jpg"), ParkImage(park_id=park.id, image_url="/b.jpg")])
        db.add(Asset(park_id=park.id, name="Banca"))
        db.add(ParkEvaluation(park_id=park.id, overall_rating=4))
        db.add(ParkDocument(park_id=park.id, title="Reglamento"))
        db.add(Volunteer(full_name=f"Voluntario {name}", email=f"vol{park.id}@example.org", preferred_park_id=park.id))
        db.commit()
        return park

    return _make


@pytest.fixture()
def director(make_user) -> User:
    return make_user("director", "director@parks.gob.mx", role="director")


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _headers
