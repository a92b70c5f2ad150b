"""
Pytest configuration and fixtures for the PinMap tests.

Every test gets its own in-memory SQLite database, so services are free
to commit and roll back without leaking state between tests.
"""
import os
from datetime import datetime, timedelta

# Must be set before anything imports pinmap.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pinmap.config import settings
from pinmap.database import Base, get_db
from pinmap.core.context import RequestContext
from pinmap.models.block import Block
from pinmap.models.connection import Connection, CONNECTION_ACCEPTED
from pinmap.models.pin import Pin, PIN_TYPE_CURRENT, PIN_TYPE_FUTURE
from pinmap.models.user import User
from pinmap.models.visibility_setting import VisibilitySetting
from pinmap.utils.time import utcnow

TEST_DATABASE_URL = "sqlite://"

# Fixed clock for service-level tests
NOW = datetime(2026, 3, 10, 12, 0, 0)

# Bounding box around lower Manhattan
NYC = {"north": 40.80, "south": 40.60, "east": -73.90, "west": -74.10}
NYC_LAT = 40.7128
NYC_LON = -74.0060


@pytest.fixture(scope="function")
def db():
    """
    Provide a clean database session for each test.

    A fresh engine per test; StaticPool keeps the single in-memory
    connection shared with the TestClient's worker thread.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def override_get_db(db_session):
    """
    Helper function to create a dependency override for get_db.
    """
    def _override():
        yield db_session
    return _override


@pytest.fixture(scope="function")
def client(db):
    """
    FastAPI TestClient bound to the per-test database.
    """
    from fastapi.testclient import TestClient
    from pinmap.main import app

    app.dependency_overrides[get_db] = override_get_db(db)

    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def auth_headers(user_id: str, **extra_headers) -> dict:
    """
    Bearer header carrying a token the way the auth service issues them.
    """
    token = jwt.encode(
        {
            "sub": user_id,
            "aud": settings.JWT_AUDIENCE,
            "exp": utcnow() + timedelta(hours=1),
        },
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    headers = {"Authorization": f"Bearer {token}"}
    headers.update(extra_headers)
    return headers


def context_for(user, now=NOW, utc_offset_minutes=0) -> RequestContext:
    return RequestContext(viewer_id=user.id, now=now, utc_offset_minutes=utc_offset_minutes)


# --------------------------------------------------
# FACTORIES
# --------------------------------------------------
@pytest.fixture
def make_user(db):
    def _make(name="Test User", level=None, looking_for=None, **fields):
        user = User(name=name, looking_for=looking_for or [], **fields)
        db.add(user)
        db.commit()
        db.refresh(user)

        if level:
            db.add(VisibilitySetting(user_id=user.id, level=level, updated_at=NOW))
            db.commit()

        return user
    return _make


@pytest.fixture
def connect(db):
    def _connect(user_a, user_b, status=CONNECTION_ACCEPTED):
        connection = Connection(from_user_id=user_a.id, to_user_id=user_b.id, status=status)
        db.add(connection)
        db.commit()
        return connection
    return _connect


@pytest.fixture
def block(db):
    def _block(blocker, blocked):
        db.add(Block(blocker_user_id=blocker.id, blocked_user_id=blocked.id))
        db.commit()
    return _block


@pytest.fixture
def make_pin(db):
    """
    Insert a pin row directly, bypassing the store's capacity rules.
    """
    def _make(owner, created_at=NOW, latitude=NYC_LAT, longitude=NYC_LON,
              arrival_time=None, description=None):
        pin = Pin(
            owner_id=owner.id,
            pin_type=PIN_TYPE_FUTURE if arrival_time else PIN_TYPE_CURRENT,
            latitude=latitude,
            longitude=longitude,
            arrival_time=arrival_time,
            description=description,
            created_at=created_at,
        )
        db.add(pin)
        db.commit()
        db.refresh(pin)
        return pin
    return _make
