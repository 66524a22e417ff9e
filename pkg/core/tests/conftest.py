"""
Global test configuration for Castboard.

This module provides global pytest configuration and fixtures: an in-memory
SQLite database per test, a deterministic reference-timezone clock, and seeded
users and streamers.
"""

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project src directory is importable without relying on external environment.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from castboard.domain.actors import Actor  # noqa: E402
from castboard.domain.entities import Streamer, User  # noqa: E402
from castboard.infra import db as db_module  # noqa: E402
from castboard.infra.clock import SteppedClock  # noqa: E402
from castboard.shared.types import UserRole  # noqa: E402
from castboard.usecases.schedule_add import add_schedule  # noqa: E402

# 2025-03-01 09:00 in Asia/Seoul
CLOCK_START = datetime(2025, 3, 1, 0, 0, tzinfo=UTC)


@pytest.fixture
def engine():
    """Fresh in-memory database with the full schema."""
    test_engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    db_module.install_dialect_hooks(test_engine)
    db_module.Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db(engine, monkeypatch):
    """
    Session bound to the test engine.

    The module-level SessionLocal is pointed at the same engine so code that
    opens its own unit of work (the CLI) sees the same data.
    """
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    monkeypatch.setattr(db_module, "SessionLocal", TestSessionLocal)
    session = TestSessionLocal()
    yield session
    session.close()


@pytest.fixture
def clock():
    return SteppedClock(CLOCK_START, tz_name="Asia/Seoul")


def _seed_user(db, clock, nickname: str, role: UserRole) -> Actor:
    user = User(nickname=nickname, role=role, is_active=True, created_at=clock.now(), updated_at=clock.now())
    db.add(user)
    db.flush()
    actor = Actor(uuid=user.uuid, role=role)
    db.commit()
    return actor


@pytest.fixture
def user_actor(db, clock) -> Actor:
    return _seed_user(db, clock, "viewer", UserRole.USER)


@pytest.fixture
def admin_actor(db, clock) -> Actor:
    return _seed_user(db, clock, "moderator", UserRole.ADMIN)


@pytest.fixture
def make_streamer(db, clock):
    """Factory for streamers; verified and active unless told otherwise."""

    def _make(name: str = "Streamer", *, verified: bool = True, active: bool = True) -> str:
        streamer = Streamer(
            name=name,
            is_verified=verified,
            is_active=active,
            follow_count=0,
            created_at=clock.now(),
            updated_at=clock.now(),
        )
        db.add(streamer)
        db.flush()
        streamer_uuid = str(streamer.uuid)
        db.commit()
        return streamer_uuid

    return _make


@pytest.fixture
def streamer(make_streamer) -> str:
    """UUID of a verified, active streamer."""
    return make_streamer("Aurora")


@pytest.fixture
def create_schedule(db, clock, user_actor, streamer):
    """Factory creating a schedule through the usecase; defaults to a SCHEDULED slot on 2025-03-10."""

    def _create(**overrides):
        params = {
            "actor": user_actor,
            "streamer_identifier": streamer,
            "title": "Evening stream",
            "schedule_date": "2025-03-10",
            "status": "SCHEDULED",
            "start_time": "2025-03-10T10:00:00+00:00",
            "clock": clock,
        }
        params.update(overrides)
        return add_schedule(db, **params)

    return _create
