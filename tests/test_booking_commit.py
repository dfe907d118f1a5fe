"""Tests for booking commit, availability loading and booking lifecycle."""

import threading

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from buildslots.database import persistence_guard
from buildslots.errors import (
    BookingNotFoundError,
    InvalidSessionTypeError,
    InvalidStatusTransitionError,
    OwnershipMismatchError,
    PersistenceUnavailableError,
    SlotUnavailableError,
)
from buildslots.models.tables import (
    AvailabilityRules,
    Bookings,
    SchedulingSettings as DBSchedulingSettings,
    SessionTypes,
)
from buildslots.services import booking_store
from buildslots.services.booking_commit import commit_booking
from buildslots.services.booking_status import transition_booking_status
from buildslots.services.slots import TimeSlot, calculate_builder_availability, get_booking_config
from buildslots.services.slots.types import BookingStatus

from conftest import (
    BUILDER_ID,
    CLIENT_ID,
    MONDAY,
    NOW,
    OTHER_BUILDER_ID,
    seed_builder,
    seed_exception,
    utc,
)


def make_slot(session_type_id: int, hour: int = 9, minute: int = 0, duration: int = 60,
              builder_id: int = BUILDER_ID) -> TimeSlot:
    start = utc(2025, 3, 10, hour, minute)
    end = utc(2025, 3, 10, hour + (minute + duration) // 60, (minute + duration) % 60)
    return TimeSlot(builder_id=builder_id, session_type_id=session_type_id, start_utc=start, end_utc=end)


def book(db, session_type_id, slot, client_id=CLIENT_ID):
    return commit_booking(
        db,
        builder_id=BUILDER_ID,
        client_id=client_id,
        session_type_id=session_type_id,
        slot=slot,
        now=NOW,
    )


class TestAvailabilityFromDatabase:

    def test_slots_from_stored_rules(self, db):
        session_type_id = seed_builder(db)
        slots = calculate_builder_availability(db, BUILDER_ID, session_type_id, MONDAY, MONDAY, now=NOW)
        assert [s.start_utc for s in slots] == [
            utc(2025, 3, 10, 9), utc(2025, 3, 10, 10), utc(2025, 3, 10, 11)
        ]

    def test_stored_exception_blocks_day(self, db):
        session_type_id = seed_builder(db)
        seed_exception(db, MONDAY, is_available=False)
        assert calculate_builder_availability(db, BUILDER_ID, session_type_id, MONDAY, MONDAY, now=NOW) == []

    def test_stored_exception_window(self, db):
        session_type_id = seed_builder(db)
        seed_exception(db, MONDAY, is_available=True, start_time="14:00", end_time="16:00")
        slots = calculate_builder_availability(db, BUILDER_ID, session_type_id, MONDAY, MONDAY, now=NOW)
        assert [s.start_utc.hour for s in slots] == [14, 15]

    def test_missing_session_type(self, db):
        seed_builder(db)
        with pytest.raises(InvalidSessionTypeError):
            calculate_builder_availability(db, BUILDER_ID, 9999, MONDAY, MONDAY, now=NOW)

    def test_malformed_rule_skipped(self, db):
        session_type_id = seed_builder(db)
        db.add(AvailabilityRules(builder_id=BUILDER_ID, day_of_week=1, start_time="9am", end_time="noon"))
        db.commit()
        slots = calculate_builder_availability(db, BUILDER_ID, session_type_id, MONDAY, MONDAY, now=NOW)
        assert len(slots) == 3

    def test_defaults_without_settings_row(self, db):
        session_type = SessionTypes(builder_id=OTHER_BUILDER_ID, title="Quote", duration_minutes=60)
        db.add(session_type)
        db.add(AvailabilityRules(builder_id=OTHER_BUILDER_ID, day_of_week=1, start_time="09:00", end_time="12:00"))
        db.commit()
        # Default horizon of 30 days from NOW covers 2025-03-10
        slots = calculate_builder_availability(
            db, OTHER_BUILDER_ID, session_type.id, MONDAY, MONDAY, now=NOW
        )
        assert len(slots) == 3


class TestCommitBooking:

    def test_commit_creates_pending_booking(self, db):
        session_type_id = seed_builder(db)
        booking = book(db, session_type_id, make_slot(session_type_id))

        assert booking.id is not None
        assert booking.status == BookingStatus.PENDING.value
        assert booking.builder_id == BUILDER_ID
        assert booking.client_id == CLIENT_ID
        assert booking.date_start == "2025-03-10 09:00:00"
        assert booking.date_end == "2025-03-10 10:00:00"

    def test_booked_slot_disappears(self, db):
        session_type_id = seed_builder(db)
        book(db, session_type_id, make_slot(session_type_id, hour=10))
        slots = calculate_builder_availability(db, BUILDER_ID, session_type_id, MONDAY, MONDAY, now=NOW)
        assert [s.start_utc.hour for s in slots] == [9, 11]

    def test_second_client_same_slot_rejected(self, db):
        session_type_id = seed_builder(db)
        book(db, session_type_id, make_slot(session_type_id))
        with pytest.raises(SlotUnavailableError):
            book(db, session_type_id, make_slot(session_type_id), client_id=CLIENT_ID + 1)
        assert db.query(Bookings).count() == 1

    def test_slot_not_offered_rejected(self, db):
        session_type_id = seed_builder(db)
        with pytest.raises(SlotUnavailableError):
            book(db, session_type_id, make_slot(session_type_id, hour=9, minute=30))
        assert db.query(Bookings).count() == 0

    def test_slot_on_blocked_day_rejected(self, db):
        session_type_id = seed_builder(db)
        seed_exception(db, MONDAY, is_available=False)
        with pytest.raises(SlotUnavailableError):
            book(db, session_type_id, make_slot(session_type_id))

    def test_overlap_detected_by_store(self, db):
        session_type_id = seed_builder(db)
        book(db, session_type_id, make_slot(session_type_id))
        with pytest.raises(SlotUnavailableError):
            booking_store.insert_booking_if_free(
                db,
                builder_id=BUILDER_ID,
                client_id=CLIENT_ID + 1,
                session_type_id=session_type_id,
                start_utc=utc(2025, 3, 10, 9, 30),
                end_utc=utc(2025, 3, 10, 10, 30),
            )

    def test_store_respects_buffer(self, db):
        session_type_id = seed_builder(db)
        book(db, session_type_id, make_slot(session_type_id))
        with pytest.raises(SlotUnavailableError):
            booking_store.insert_booking_if_free(
                db,
                builder_id=BUILDER_ID,
                client_id=CLIENT_ID + 1,
                session_type_id=session_type_id,
                start_utc=utc(2025, 3, 10, 10),
                end_utc=utc(2025, 3, 10, 11),
                buffer_minutes=15,
            )

    def test_replay_returns_same_booking(self, db):
        session_type_id = seed_builder(db)
        first = book(db, session_type_id, make_slot(session_type_id))
        second = book(db, session_type_id, make_slot(session_type_id))
        assert first.id == second.id
        assert db.query(Bookings).count() == 1

    def test_slot_for_other_session_type(self, db):
        session_type_id = seed_builder(db)
        with pytest.raises(OwnershipMismatchError):
            book(db, session_type_id, make_slot(session_type_id + 1))

    def test_slot_for_other_builder(self, db):
        session_type_id = seed_builder(db)
        with pytest.raises(OwnershipMismatchError):
            book(db, session_type_id, make_slot(session_type_id, builder_id=OTHER_BUILDER_ID))

    def test_concurrent_commits_one_wins(self, db, session_factory):
        session_type_id = seed_builder(db)
        barrier = threading.Barrier(2)
        results = {}

        def attempt(client_id):
            session = session_factory()
            try:
                barrier.wait()
                results[client_id] = book(session, session_type_id, make_slot(session_type_id), client_id)
            except SlotUnavailableError as e:
                results[client_id] = e
            finally:
                session.close()

        threads = [threading.Thread(target=attempt, args=(cid,)) for cid in (201, 202)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        outcomes = list(results.values())
        assert len(outcomes) == 2
        assert sum(isinstance(o, SlotUnavailableError) for o in outcomes) == 1
        winner = next(o for o in outcomes if not isinstance(o, Exception))
        assert winner.status == BookingStatus.PENDING.value
        assert db.query(Bookings).count() == 1

    @pytest.mark.parametrize("with_settings_row", [True, False])
    def test_concurrent_overlapping_inserts_one_wins(self, db, session_factory, with_settings_row):
        if with_settings_row:
            session_type_id = seed_builder(db)
        else:
            session_type = SessionTypes(builder_id=BUILDER_ID, title="Roof survey", duration_minutes=60)
            db.add(session_type)
            db.commit()
            session_type_id = session_type.id

        barrier = threading.Barrier(2)
        results = {}
        intervals = {
            201: (utc(2025, 3, 10, 9), utc(2025, 3, 10, 10)),
            202: (utc(2025, 3, 10, 9, 30), utc(2025, 3, 10, 10, 30)),
        }

        def attempt(client_id):
            session = session_factory()
            start, end = intervals[client_id]
            try:
                barrier.wait()
                results[client_id] = booking_store.insert_booking_if_free(
                    session,
                    builder_id=BUILDER_ID,
                    client_id=client_id,
                    session_type_id=session_type_id,
                    start_utc=start,
                    end_utc=end,
                )
            except Exception as e:
                results[client_id] = e
            finally:
                session.close()

        threads = [threading.Thread(target=attempt, args=(cid,)) for cid in intervals]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        outcomes = list(results.values())
        assert len(outcomes) == 2
        assert not any(isinstance(o, PersistenceUnavailableError) for o in outcomes)
        assert sum(isinstance(o, SlotUnavailableError) for o in outcomes) == 1
        assert sum(isinstance(o, Bookings) for o in outcomes) == 1
        assert db.query(Bookings).count() == 1

    def test_commit_creates_default_settings_row(self, db):
        session_type = SessionTypes(builder_id=BUILDER_ID, title="Roof survey", duration_minutes=60)
        db.add(session_type)
        db.add(AvailabilityRules(builder_id=BUILDER_ID, day_of_week=1, start_time="09:00", end_time="12:00"))
        db.commit()

        book(db, session_type.id, make_slot(session_type.id))

        row = db.query(DBSchedulingSettings).filter(DBSchedulingSettings.builder_id == BUILDER_ID).one()
        config = get_booking_config()
        assert row.timezone == config.default_timezone
        assert row.min_notice_minutes == config.default_min_notice_minutes
        assert row.max_advance_days == config.default_max_advance_days
        assert row.buffer_minutes == config.default_buffer_minutes

    def test_store_failure_reported_as_unavailable_persistence(self, db, monkeypatch):
        session_type_id = seed_builder(db)

        def locked(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(booking_store, "_lock_builder", locked)
        with pytest.raises(PersistenceUnavailableError):
            book(db, session_type_id, make_slot(session_type_id))
        assert db.query(Bookings).count() == 0


class TestPersistenceGuard:

    def test_operational_error_translated(self, db):
        with pytest.raises(PersistenceUnavailableError):
            with persistence_guard(db):
                raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

    def test_integrity_error_passes_through(self, db):
        with pytest.raises(IntegrityError):
            with persistence_guard(db):
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))


class TestStatusTransitions:

    def test_confirm_then_complete(self, db):
        session_type_id = seed_builder(db)
        booking = book(db, session_type_id, make_slot(session_type_id))

        booking = transition_booking_status(db, booking.id, BookingStatus.CONFIRMED)
        assert booking.status == "confirmed"
        booking = transition_booking_status(db, booking.id, "completed")
        assert booking.status == "completed"

    def test_final_status_cannot_change(self, db):
        session_type_id = seed_builder(db)
        booking = book(db, session_type_id, make_slot(session_type_id))
        transition_booking_status(db, booking.id, BookingStatus.CANCELLED)
        with pytest.raises(InvalidStatusTransitionError):
            transition_booking_status(db, booking.id, BookingStatus.CONFIRMED)

    def test_pending_cannot_complete(self, db):
        session_type_id = seed_builder(db)
        booking = book(db, session_type_id, make_slot(session_type_id))
        with pytest.raises(InvalidStatusTransitionError):
            transition_booking_status(db, booking.id, BookingStatus.COMPLETED)

    def test_unknown_booking(self, db):
        seed_builder(db)
        with pytest.raises(BookingNotFoundError):
            transition_booking_status(db, 12345, BookingStatus.CONFIRMED)

    def test_cancel_frees_slot(self, db):
        session_type_id = seed_builder(db)
        booking = book(db, session_type_id, make_slot(session_type_id))
        cancelled = transition_booking_status(db, booking.id, BookingStatus.CANCELLED, reason="client request")
        assert cancelled.cancel_reason == "client request"

        rebooked = book(db, session_type_id, make_slot(session_type_id), client_id=CLIENT_ID + 1)
        assert rebooked.id != booking.id
        assert rebooked.status == BookingStatus.PENDING.value

    def test_reason_ignored_unless_cancelling(self, db):
        session_type_id = seed_builder(db)
        booking = book(db, session_type_id, make_slot(session_type_id))
        confirmed = transition_booking_status(db, booking.id, BookingStatus.CONFIRMED, reason="ignored")
        assert confirmed.cancel_reason is None

    def test_concurrent_transition_loses(self, db, session_factory):
        session_type_id = seed_builder(db)
        booking = book(db, session_type_id, make_slot(session_type_id))
        transition_booking_status(db, booking.id, BookingStatus.CONFIRMED)

        stale = db.get(Bookings, booking.id)
        assert stale.status == "confirmed"

        other = session_factory()
        try:
            transition_booking_status(other, booking.id, BookingStatus.CANCELLED)
        finally:
            other.close()

        # `stale` still reads confirmed; the conditional update must notice the change
        with pytest.raises(InvalidStatusTransitionError):
            booking_store.update_booking_status(db, stale, BookingStatus.COMPLETED.value)

        db.expire_all()
        assert db.get(Bookings, booking.id).status == "cancelled"
