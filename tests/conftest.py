"""
Test configuration and fixtures.

Each test gets its own in-memory SQLite database and a fake job queue.
"""

import os
from datetime import datetime, timedelta

# Must be set BEFORE any import of booking_backend
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DISPLAY_TIMEZONE"] = "America/Sao_Paulo"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from booking_backend.api_main import app, get_job_queue
from booking_backend.auth_security import create_access_token, hash_password
from booking_backend.db import Base, get_session
from booking_backend.errors import EnqueueError
from booking_backend.jobs import JobHandle
from booking_backend.models import File
from booking_backend.repositories import AppointmentRepository, NotificationRepository, UserRepository

NOW = datetime(2026, 10, 18, 12, 0)


class FakeJobQueue:
    """Records enqueued jobs instead of talking to Redis."""

    def __init__(self) -> None:
        self.jobs: list[tuple[str, dict]] = []
        self.fail = False

    async def enqueue(self, job_name: str, payload: dict) -> JobHandle:
        if self.fail:
            raise EnqueueError("redis down")
        self.jobs.append((job_name, payload))
        return JobHandle(job_id=f"job-{len(self.jobs)}", job_name=job_name)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    s = factory()
    yield s
    s.close()


@pytest.fixture
def users(session):
    return UserRepository(session)


@pytest.fixture
def appointments(session):
    return AppointmentRepository(session)


@pytest.fixture
def notifications(session):
    return NotificationRepository(session)


@pytest.fixture
def queue():
    return FakeJobQueue()


@pytest.fixture
def customer(users, session):
    u = users.create(name="Ana Cliente", email="ana@test.com", password_hash=hash_password("secret123"))
    session.commit()
    return u


@pytest.fixture
def provider(users, session, customer):
    avatar = File(name="diego.png", path="diego.png")
    session.add(avatar)
    u = users.create(
        name="Diego Barbeiro",
        email="diego@test.com",
        password_hash=hash_password("secret123"),
        provider=True,
        avatar=avatar,
    )
    session.commit()
    return u


@pytest.fixture
def plain_user(users, session, provider):
    u = users.create(name="Bruno", email="bruno@test.com", password_hash="x")
    session.commit()
    return u


@pytest.fixture
def client(session, queue):
    def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_job_queue] = lambda: queue
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(customer):
    return {"Authorization": f"Bearer {create_access_token(customer.id)}"}


def tomorrow_at(hour: int, minute: int = 0) -> datetime:
    d = datetime.utcnow() + timedelta(days=1)
    return d.replace(hour=hour, minute=minute, second=0, microsecond=0)
