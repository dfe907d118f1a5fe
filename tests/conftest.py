"""Shared test fixtures and helpers."""

import os
import tempfile
from datetime import date, datetime, timezone
from typing import Optional

# Settings and the module-level engine are built on import
_TMP_DIR = tempfile.mkdtemp(prefix="buildslots-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP_DIR}/app.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6399/0")
os.environ.setdefault("DB_TIMEOUT_SECONDS", "5")

import pytest
from sqlalchemy.orm import sessionmaker

from buildslots.database import create_db_engine
from buildslots.models import Base
from buildslots.models.tables import (
    AvailabilityExceptions,
    AvailabilityRules,
    SchedulingSettings as DBSchedulingSettings,
    SessionTypes,
)
from buildslots.services.slots import (
    AvailabilityException,
    AvailabilityRule,
    BookedInterval,
    SchedulingSettings,
    SessionType,
)

BUILDER_ID = 1
OTHER_BUILDER_ID = 2
CLIENT_ID = 100

# 2025-03-10 is a Monday; "now" sits well before it
NOW = datetime(2025, 3, 1, 0, 0, tzinfo=timezone.utc)
MONDAY = date(2025, 3, 10)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_rule(
    day_of_week: int = 1,
    start: str = "09:00",
    end: str = "12:00",
    builder_id: int = BUILDER_ID,
    tz: Optional[str] = None,
    effective_date: Optional[date] = None,
    expiration_date: Optional[date] = None,
) -> AvailabilityRule:
    """Helper to create a weekly rule from "HH:MM" strings."""
    def to_min(value: str) -> int:
        hours, minutes = value.split(":")
        return int(hours) * 60 + int(minutes)

    return AvailabilityRule(
        builder_id=builder_id,
        day_of_week=day_of_week,
        start_minute=to_min(start),
        end_minute=to_min(end),
        timezone=tz,
        effective_date=effective_date,
        expiration_date=expiration_date,
    )


def make_exception(
    day: date,
    is_available: bool = False,
    start_minute: Optional[int] = None,
    end_minute: Optional[int] = None,
    builder_id: int = BUILDER_ID,
) -> AvailabilityException:
    return AvailabilityException(
        builder_id=builder_id,
        date=day,
        is_available=is_available,
        start_minute=start_minute,
        end_minute=end_minute,
    )


def make_session_type(
    duration: int = 60,
    session_type_id: int = 10,
    builder_id: Optional[int] = BUILDER_ID,
    is_active: bool = True,
) -> SessionType:
    return SessionType(
        id=session_type_id,
        duration_minutes=duration,
        builder_id=builder_id,
        is_active=is_active,
    )


def make_booking(
    start: datetime,
    end: datetime,
    status: str = "confirmed",
    builder_id: int = BUILDER_ID,
) -> BookedInterval:
    return BookedInterval(builder_id=builder_id, start_utc=start, end_utc=end, status=status)


def make_settings(
    tz: str = "UTC",
    min_notice_minutes: int = 0,
    max_advance_days: Optional[int] = None,
    buffer_minutes: int = 0,
    is_accepting_bookings: bool = True,
) -> SchedulingSettings:
    return SchedulingSettings(
        timezone=tz,
        min_notice_minutes=min_notice_minutes,
        max_advance_days=max_advance_days,
        buffer_minutes=buffer_minutes,
        is_accepting_bookings=is_accepting_bookings,
    )


# ── Database fixtures ───────────────────────────────────────────────────


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so several connections can race on one database."""
    db_engine = create_db_engine(f"sqlite:///{tmp_path}/test.db", timeout_seconds=5.0)
    Base.metadata.create_all(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def seed_builder(
    session,
    builder_id: int = BUILDER_ID,
    duration: int = 60,
    tz: str = "UTC",
    min_notice_minutes: int = 0,
    max_advance_days: Optional[int] = None,
    buffer_minutes: int = 0,
    rules: tuple = ((1, "09:00", "12:00"),),
) -> int:
    """Insert a session type, scheduling settings and weekly rules; return the session type id."""
    session_type = SessionTypes(
        builder_id=builder_id,
        title="Site consultation",
        duration_minutes=duration,
    )
    session.add(session_type)
    session.add(DBSchedulingSettings(
        builder_id=builder_id,
        timezone=tz,
        min_notice_minutes=min_notice_minutes,
        max_advance_days=max_advance_days,
        buffer_minutes=buffer_minutes,
        is_accepting_bookings=1,
    ))
    for day_of_week, start, end in rules:
        session.add(AvailabilityRules(
            builder_id=builder_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
        ))
    session.commit()
    return session_type.id


def seed_exception(session, day: date, is_available: bool = False, builder_id: int = BUILDER_ID,
                   start_time: Optional[str] = None, end_time: Optional[str] = None) -> None:
    session.add(AvailabilityExceptions(
        builder_id=builder_id,
        date=day.isoformat(),
        is_available=int(is_available),
        start_time=start_time,
        end_time=end_time,
    ))
    session.commit()
