"""
Tests for the venue session lifecycle.

Tests:
- Entry is idempotent and needs a live session
- One active session per venue
- Lazy expiry cascade and the admin "end now" share one idempotent path
- Extend / leave / expiry sweep
"""

import pytest
from sqlalchemy import func, select

from app.core.errors import ActiveElsewhere, InvalidTarget, NoActiveSession, SessionNotFound
from app.models import Attendance, Profile, SessionMetadata
from app.services import sessions
from app.stores import AttendanceStore, SessionStore

from conftest import add_profile, add_staff, add_venue, open_night


def _active_sessions(db, venue_id):
    return db.execute(
        select(func.count(SessionMetadata.id)).where(
            SessionMetadata.venue_id == venue_id, SessionMetadata.is_active.is_(True)
        )
    ).scalar_one()


class TestEntry:
    def test_enter_twice_returns_same_attendance(self, db, venue, night, guests, clock):
        first = sessions.ensure_attendance(db, venue.id, "alice", now=clock())
        second = sessions.ensure_attendance(db, venue.id, "alice", now=clock.advance(minutes=5))

        assert first.id == second.id
        count = db.execute(
            select(func.count(Attendance.id)).where(Attendance.profile_id == "alice")
        ).scalar_one()
        assert count == 1

    def test_enter_without_session(self, db, venue, guests, clock):
        with pytest.raises(NoActiveSession):
            sessions.ensure_attendance(db, venue.id, "alice", now=clock())

    def test_enter_unknown_profile(self, db, venue, night, clock):
        with pytest.raises(InvalidTarget):
            sessions.ensure_attendance(db, venue.id, "ghost", now=clock())

    def test_checked_in_elsewhere(self, db, venue, night, guests, clock):
        other = add_venue(db, name="Blue Door", slug="blue-door")
        open_night(db, other.id, clock())
        sessions.ensure_attendance(db, venue.id, "alice", now=clock())

        with pytest.raises(ActiveElsewhere):
            sessions.ensure_attendance(db, other.id, "alice", now=clock())

    def test_enter_after_other_venue_ended(self, db, venue, guests, clock):
        other = add_venue(db, name="Blue Door", slug="blue-door")
        open_night(db, venue.id, clock(), hours=1)
        first = sessions.ensure_attendance(db, venue.id, "alice", now=clock()).id

        # nobody has looked at the first venue since its night ran out
        clock.advance(hours=2)
        open_night(db, other.id, clock())
        row = sessions.ensure_attendance(db, other.id, "alice", now=clock())

        assert row.venue_id == other.id
        old = db.get(Attendance, first)
        assert old.status == "inactive"
        assert old.exited_at is not None
        assert db.get(Profile, "alice").is_deactivated is False
        assert _active_sessions(db, venue.id) == 0

    def test_enter_with_stale_row_elsewhere(self, db, venue, guests, clock):
        other = add_venue(db, name="Blue Door", slug="blue-door")
        night = open_night(db, venue.id, clock())
        stale = sessions.ensure_attendance(db, venue.id, "alice", now=clock()).id
        # session switched off without the cascade reaching attendance
        db.get(SessionMetadata, night.id).is_active = False
        db.commit()

        open_night(db, other.id, clock())
        row = sessions.ensure_attendance(db, other.id, "alice", now=clock())

        assert row.venue_id == other.id
        assert db.get(Attendance, stale).status == "inactive"

    def test_reentry_reactivates_profile(self, db, venue, guests, clock):
        open_night(db, venue.id, clock(), hours=1)
        sessions.ensure_attendance(db, venue.id, "alice", now=clock())

        clock.advance(hours=2)
        assert sessions.get_active_session(db, venue.id, now=clock()) is None
        assert db.get(Profile, "alice").is_deactivated is True

        open_night(db, venue.id, clock())
        row = sessions.ensure_attendance(db, venue.id, "alice", now=clock())

        assert row.status == "active"
        alice = db.get(Profile, "alice")
        assert alice.is_deactivated is False
        assert alice.deactivated_at is None

    def test_lost_insert_race_returns_winner(self, db, venue, night, guests, clock):
        winner = sessions.ensure_attendance(db, venue.id, "alice", now=clock())

        # a second writer that skipped the read goes straight to the insert
        row, created = AttendanceStore(db).insert_active(
            profile_id="alice", venue_id=venue.id, session_id=night.id, now=clock()
        )
        db.commit()

        assert created is False
        assert row.id == winner.id

    def test_leave(self, db, venue, night, guests, clock):
        sessions.ensure_attendance(db, venue.id, "alice", now=clock())

        assert sessions.leave_venue(db, venue.id, "alice", now=clock.advance(minutes=30)) is True
        assert sessions.leave_venue(db, venue.id, "alice", now=clock()) is False
        assert AttendanceStore(db).active_for_profile("alice") is None


class TestSessionWindow:
    def test_start_closes_previous(self, db, venue, clock):
        first = open_night(db, venue.id, clock())
        clock.advance(hours=1)
        second = open_night(db, venue.id, clock())

        assert first.id != second.id
        assert _active_sessions(db, venue.id) == 1
        db.refresh(first)
        assert first.is_active is False
        assert first.end_time == clock()

    def test_conflicting_insert_absorbed(self, db, venue, night, clock):
        row, created = SessionStore(db).insert_active(
            SessionMetadata(
                venue_id=venue.id,
                session_name="Late",
                session_type="event",
                duration_hours=2,
                start_time=clock(),
                end_time=sessions.compute_end_time(clock(), 2),
                is_active=True,
                created_at=clock(),
            )
        )
        db.commit()

        assert created is False
        assert row.id == night.id
        assert _active_sessions(db, venue.id) == 1

    def test_active_session_before_end(self, db, venue, night, clock):
        clock.advance(hours=5, minutes=59)
        assert sessions.get_active_session(db, venue.id, now=clock()).id == night.id

    def test_extend_recomputes_end(self, db, venue, night, clock):
        clock.advance(hours=3)
        row = sessions.extend_session(db, night.id, duration_hours=10, now=clock(), venue_id=venue.id)

        assert row.duration_hours == 10
        assert row.end_time == sessions.compute_end_time(row.start_time, 10)

    def test_extend_expired(self, db, venue, night, clock):
        clock.advance(hours=7)
        with pytest.raises(NoActiveSession):
            sessions.extend_session(db, night.id, duration_hours=10, now=clock())
        assert _active_sessions(db, venue.id) == 0

    def test_extend_wrong_venue(self, db, venue, night, clock):
        other = add_venue(db, name="Blue Door", slug="blue-door")
        with pytest.raises(SessionNotFound):
            sessions.extend_session(db, night.id, duration_hours=2, now=clock(), venue_id=other.id)


class TestExpiryCascade:
    def test_lazy_expiry(self, db, venue, night, guests, clock):
        add_profile(db, "dj")
        add_staff(db, venue.id, "dj")
        for pid in ("alice", "bob", "dj"):
            sessions.ensure_attendance(db, venue.id, pid, now=clock())

        clock.advance(hours=6, minutes=1)
        assert sessions.get_active_session(db, venue.id, now=clock()) is None

        rows = db.execute(select(Attendance).where(Attendance.venue_id == venue.id)).scalars().all()
        assert {r.status for r in rows} == {"inactive"}
        assert {r.exited_at for r in rows} == {clock()}

        assert db.get(Profile, "alice").is_deactivated is True
        assert db.get(Profile, "bob").is_deactivated is True
        assert db.get(Profile, "dj").is_deactivated is False
        # not inside, so untouched
        assert db.get(Profile, "carol").is_deactivated is False

        session = db.get(SessionMetadata, night.id)
        assert session.is_active is False
        # the scheduled end is earlier than the moment we noticed
        assert session.end_time == sessions.compute_end_time(session.start_time, 6)
        assert session.end_time < clock()

    def test_cascade_runs_once(self, db, venue, night, guests, clock):
        att_id = sessions.ensure_attendance(db, venue.id, "alice", now=clock()).id
        clock.advance(hours=7)

        session = db.get(SessionMetadata, night.id)
        assert sessions.expire_session(db, session, now=clock()) is True
        db.commit()
        exited_at = AttendanceStore(db).get(att_id).exited_at

        clock.advance(minutes=10)
        session = db.get(SessionMetadata, night.id)
        assert sessions.expire_session(db, session, now=clock()) is False
        db.rollback()
        assert sessions.get_active_session(db, venue.id, now=clock()) is None
        assert AttendanceStore(db).get(att_id).exited_at == exited_at

    def test_concurrent_loser_is_noop(self, db, session_factory, venue, night, guests, clock):
        sessions.ensure_attendance(db, venue.id, "alice", now=clock())
        night_id = night.id
        # release the write lock before the second session reads
        db.commit()

        other = session_factory()
        try:
            stale = other.get(SessionMetadata, night_id)
            other.commit()

            clock.advance(hours=7)
            assert sessions.get_active_session(db, venue.id, now=clock()) is None
            db.commit()

            assert sessions.expire_session(other, stale, now=clock.advance(minutes=1)) is False
            other.rollback()
        finally:
            other.close()

    def test_deactivate_now_twice(self, db, venue, night, guests, clock):
        sessions.ensure_attendance(db, venue.id, "alice", now=clock())
        clock.advance(hours=2)

        first = sessions.deactivate_now(db, night.id, now=clock(), venue_id=venue.id)
        ended = clock()
        assert first.is_active is False
        assert first.end_time == ended

        clock.advance(hours=1)
        again = sessions.deactivate_now(db, night.id, now=clock(), venue_id=venue.id)
        assert again.is_active is False
        assert again.end_time == ended
        assert db.get(Profile, "alice").is_deactivated is True

    def test_deactivate_unknown(self, db, venue, clock):
        with pytest.raises(SessionNotFound):
            sessions.deactivate_now(db, 999, now=clock())

    def test_enter_after_expiry(self, db, venue, night, guests, clock):
        clock.advance(hours=6)
        with pytest.raises(NoActiveSession):
            sessions.ensure_attendance(db, venue.id, "alice", now=clock())


class TestSweep:
    def test_sweep_closes_expired(self, db, session_factory, venue, night, guests, clock, monkeypatch):
        from app.scripts import expire_sessions

        sessions.ensure_attendance(db, venue.id, "alice", now=clock())
        db.commit()
        db.close()

        monkeypatch.setattr(expire_sessions, "SessionLocal", session_factory)
        monkeypatch.setattr(expire_sessions, "utcnow", lambda: clock.advance(hours=8))

        assert expire_sessions.main() == 1
        assert expire_sessions.main() == 0
        assert db.get(Profile, "alice").is_deactivated is True
