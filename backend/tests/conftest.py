"""
Pytest fixtures for the venue social backend.

Every test gets its own SQLite file with the same transactional recipe the
app uses (SAVEPOINTs work, writers serialise), plus a clock that only moves
when the test moves it.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("COOKIE_SECURE", "false")

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.auth.deps import get_jwt_config
from app.auth.jwt_tokens import create_access_token
from app.core.clock import get_clock
from app.core.db import Base, get_db, make_engine
from app.main import app
from app.models import Profile, Venue, VenueMember
from app.services import sessions


NOW = datetime(2026, 6, 13, 21, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'social.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    """Service-level tests: one session, the way a request would hold it."""
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def seed(engine):
    """API tests: short-lived session that commits and releases the write lock.

    Objects stay readable after the block because nothing is expired on commit.
    """
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @contextmanager
    def _seed():
        with factory() as s:
            yield s
            s.commit()

    return _seed


# ---------- Builders ----------

def add_profile(db, profile_id: str, name: str | None = None, **fields) -> Profile:
    p = Profile(id=profile_id, display_name=name or profile_id.title(), created_at=NOW, **fields)
    db.add(p)
    db.commit()
    return p


def add_venue(db, name: str = "Night Owl", slug: str = "night-owl") -> Venue:
    v = Venue(name=name, slug=slug, created_at=NOW)
    db.add(v)
    db.commit()
    return v


def add_staff(db, venue_id: int, profile_id: str, *, role: str = "STAFF", show_in_guest_feed: bool = False) -> VenueMember:
    m = VenueMember(
        venue_id=venue_id,
        profile_id=profile_id,
        venue_role=role,
        is_active=True,
        show_in_guest_feed=show_in_guest_feed,
    )
    db.add(m)
    db.commit()
    return m


def open_night(db, venue_id: int, now: datetime, hours: int = 6):
    return sessions.start_session(db, venue_id, name="Friday", duration_hours=hours, now=now)


@pytest.fixture
def venue(db):
    return add_venue(db)


@pytest.fixture
def night(db, venue, clock):
    return open_night(db, venue.id, clock())


@pytest.fixture
def guests(db):
    """alice, bob and carol, all plain guests."""
    return {pid: add_profile(db, pid) for pid in ("alice", "bob", "carol")}


# ---------- HTTP ----------

@pytest.fixture
def client(session_factory, clock):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Put an identity-provider token for `profile_id` into the client's cookie jar."""

    def _login(profile_id: str) -> TestClient:
        token = create_access_token(get_jwt_config(), profile_id)
        client.cookies.set("access_token", token)
        return client

    return _login
