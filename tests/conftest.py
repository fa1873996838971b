"""Pytest configuration and shared fixtures."""
import os

# Keep the application's own engine off the filesystem during tests
os.environ.setdefault("SIRRS_DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sirrs.database import Base
from sirrs.models.domain import User, Incident
from sirrs.models.enums import Role
from sirrs.services.access import Actor
from sirrs.services.lifecycle import LifecycleEngine


@pytest.fixture
def db_engine():
    """In-memory database shared by every session of one test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Create a fresh in-memory database for each test."""
    TestingSessionLocal = sessionmaker(bind=db_engine)
    session = TestingSessionLocal()

    yield session

    session.close()


def _make_user(db_session, name, email, role):
    user = User(name=name, email=email, role=role)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def citizen(db_session):
    return _make_user(db_session, "Asha Rao", "asha@example.com", Role.CITIZEN)


@pytest.fixture
def other_citizen(db_session):
    return _make_user(db_session, "Ben Okafor", "ben@example.com", Role.CITIZEN)


@pytest.fixture
def authority(db_session):
    return _make_user(db_session, "Roads Dept", "roads@city.gov", Role.AUTHORITY)


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "City Admin", "admin@city.gov", Role.ADMIN)


@pytest.fixture
def citizen_actor(citizen):
    return Actor(id=citizen.id, role=Role.CITIZEN)


@pytest.fixture
def other_citizen_actor(other_citizen):
    return Actor(id=other_citizen.id, role=Role.CITIZEN)


@pytest.fixture
def authority_actor(authority):
    return Actor(id=authority.id, role=Role.AUTHORITY)


@pytest.fixture
def admin_actor(admin):
    return Actor(id=admin.id, role=Role.ADMIN)


@pytest.fixture
def engine(db_session):
    return LifecycleEngine(db_session)


@pytest.fixture
def sample_incident(engine, citizen) -> Incident:
    """A pending incident reported by ``citizen`` with an auto-suggested category."""
    incident, _ = engine.create_incident(
        reporter_id=citizen.id,
        title="Pothole on Main Street",
        description="Large pothole on Main Street causing traffic",
        latitude=12.9715987,
        longitude=77.5945627,
        photos=["/uploads/pothole-1.jpg"],
        address="Main Street, Ward 4"
    )
    return incident
