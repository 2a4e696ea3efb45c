"""Venue session lifecycle: the admin window and per-guest attendance.

Expiry is detected, not scheduled. Any read that finds an active session whose
end_time has passed runs `expire_session`, which is also what the admin
"end the night now" button calls, so both paths share one cascade:

  (a) every open attendance of the venue -> inactive, exited_at=now
  (b) every non-staff attendee -> is_deactivated=True
  (c) the session row -> is_active=False, end_time=min(end_time, now)

The cascade claims the session with a conditional UPDATE first; a concurrent
caller that loses the claim does nothing, which keeps it idempotent.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.core.errors import (
    ActiveElsewhere,
    InvalidTarget,
    NoActiveSession,
    SessionNotFound,
    VenueNotFound,
    translate_store_errors,
)
from app.models import Attendance, SessionMetadata, Venue
from app.stores import AttendanceStore, ProfileStore, SessionStore

log = logging.getLogger("social.sessions")

MAX_DURATION_HOURS = 168


def is_expired(session: SessionMetadata, now: datetime) -> bool:
    return session.end_time is not None and now >= session.end_time


def compute_end_time(start_time: datetime, duration_hours: int) -> datetime:
    return start_time + timedelta(hours=duration_hours)


def expire_session(db: Session, session: SessionMetadata, *, now: datetime) -> bool:
    """Run the expiry cascade inside the caller's transaction.

    Returns True if this call performed it, False if someone already had.
    The caller commits.
    """
    if not SessionStore(db).claim_close(session.id, now=now):
        return False

    profile_ids = AttendanceStore(db).exit_all_for_venue(session.venue_id, now=now)
    deactivated = ProfileStore(db).deactivate_guests(session.venue_id, profile_ids, now=now)

    session.is_active = False
    session.updated_at = now
    if session.end_time is None or session.end_time > now:
        session.end_time = now

    log.info(
        "session %s closed venue_id=%s exited=%s deactivated=%s",
        session.id,
        session.venue_id,
        len(profile_ids),
        deactivated,
    )
    return True


@translate_store_errors
def get_active_session(db: Session, venue_id: int, *, now: datetime) -> SessionMetadata | None:
    session = SessionStore(db).latest_active(venue_id)
    if session is None:
        return None
    if not is_expired(session, now):
        return session

    if expire_session(db, session, now=now):
        db.commit()
    else:
        db.rollback()
    return None


@translate_store_errors
def ensure_attendance(db: Session, venue_id: int, profile_id: str, *, now: datetime) -> Attendance:
    session = get_active_session(db, venue_id, now=now)
    if session is None:
        raise NoActiveSession()

    profiles = ProfileStore(db)
    profile = profiles.get(profile_id)
    if profile is None:
        raise InvalidTarget("profile not found")

    attendance = AttendanceStore(db)
    row = attendance.active_for_profile(profile_id)
    if row is not None and row.venue_id != venue_id:
        # the other venue may be over without anyone having looked at it yet
        if get_active_session(db, row.venue_id, now=now) is not None:
            db.rollback()
            raise ActiveElsewhere()
        row = attendance.active_for_profile(profile_id)
        if row is not None and row.venue_id != venue_id:
            attendance.exit_one(row.id, now=now)
            row = None
        profile = profiles.get(profile_id)

    created = False
    if row is None:
        row, created = attendance.insert_active(
            profile_id=profile_id,
            venue_id=venue_id,
            session_id=session.id,
            now=now,
        )

    if row.venue_id != venue_id:
        db.rollback()
        raise ActiveElsewhere()

    profiles.reactivate(profile, now=now)
    db.commit()

    if created:
        log.info("profile %s entered venue_id=%s attendance_id=%s", profile_id, venue_id, row.id)
    return row


@translate_store_errors
def leave_venue(db: Session, venue_id: int, profile_id: str, *, now: datetime) -> bool:
    attendance = AttendanceStore(db)
    row = attendance.active_for_profile(profile_id)
    if row is None or row.venue_id != venue_id:
        return False
    left = attendance.exit_one(row.id, now=now)
    db.commit()
    return left


@translate_store_errors
def deactivate_now(
    db: Session,
    session_id: int,
    *,
    now: datetime,
    venue_id: int | None = None,
) -> SessionMetadata:
    session = SessionStore(db).get(session_id)
    if session is None or (venue_id is not None and session.venue_id != venue_id):
        raise SessionNotFound()

    if session.is_active and expire_session(db, session, now=now):
        db.commit()
    else:
        db.rollback()
    return session


@translate_store_errors
def start_session(
    db: Session,
    venue_id: int,
    *,
    name: str,
    duration_hours: int,
    now: datetime,
    session_type: str = "event",
    description: str | None = None,
) -> SessionMetadata:
    """Open tonight's window. A still-live session is closed through the cascade first."""
    if db.get(Venue, venue_id) is None:
        raise VenueNotFound()

    store = SessionStore(db)
    current = store.latest_active(venue_id)
    if current is not None:
        expire_session(db, current, now=now)

    row, created = store.insert_active(
        SessionMetadata(
            venue_id=venue_id,
            session_name=name,
            session_description=description,
            session_type=session_type,
            duration_hours=duration_hours,
            start_time=now,
            end_time=compute_end_time(now, duration_hours),
            is_active=True,
            created_at=now,
        )
    )
    db.commit()

    if created:
        log.info("session %s started venue_id=%s hours=%s", row.id, venue_id, duration_hours)
    return row


@translate_store_errors
def extend_session(
    db: Session,
    session_id: int,
    *,
    duration_hours: int,
    now: datetime,
    venue_id: int | None = None,
    name: str | None = None,
) -> SessionMetadata:
    """Change the length of a live session; end_time is recomputed from start_time."""
    session = SessionStore(db).get(session_id)
    if session is None or not session.is_active:
        raise SessionNotFound()
    if venue_id is not None and session.venue_id != venue_id:
        raise SessionNotFound()

    if is_expired(session, now):
        if expire_session(db, session, now=now):
            db.commit()
        else:
            db.rollback()
        raise NoActiveSession()

    session.duration_hours = duration_hours
    session.end_time = compute_end_time(session.start_time, duration_hours)
    if name:
        session.session_name = name
    session.updated_at = now
    db.commit()
    return session
