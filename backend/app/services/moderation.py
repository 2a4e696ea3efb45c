from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import InvalidTarget, translate_store_errors
from app.models import Attendance, Profile
from app.services.access import is_staff
from app.stores import ProfileStore

log = logging.getLogger("social.moderation")

BLOCK_DURATIONS = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "permanent": None,
}


def has_attended(db: Session, venue_id: int, profile_id: str) -> bool:
    row = db.execute(
        select(Attendance.id).where(
            Attendance.venue_id == venue_id,
            Attendance.profile_id == profile_id,
        )
    ).first()
    return row is not None


@translate_store_errors
def set_guest_status(
    db: Session,
    venue_id: int,
    profile_id: str,
    *,
    action: str,
    now: datetime,
    duration: str | None = None,
    reason: str | None = None,
) -> Profile:
    """Staff block/unblock of a guest of this venue.

    Only profiles that have checked in at the venue at least once can be
    moderated from it, and staff of the venue (or platform admins) never can.
    Blocked guests vanish from feeds and cannot send vibes.
    """
    profile = ProfileStore(db).get(profile_id)
    if profile is None:
        raise InvalidTarget()
    if not has_attended(db, venue_id, profile_id):
        raise InvalidTarget("not a guest of this venue")
    if is_staff(db, profile, venue_id):
        raise InvalidTarget("staff cannot be moderated")

    if action == "unblock":
        profile.blocked_until = None
        profile.blocked_reason = None
        profile.blocked_permanently = False
    elif action == "block":
        key = duration or "permanent"
        if key not in BLOCK_DURATIONS:
            raise InvalidTarget("bad duration")
        delta = BLOCK_DURATIONS[key]
        profile.blocked_until = now + delta if delta is not None else None
        profile.blocked_permanently = delta is None
        profile.blocked_reason = (reason or "").strip() or None
    else:
        raise InvalidTarget("bad action")

    db.commit()
    log.info("guest %s %s venue_id=%s duration=%s", profile_id, action, venue_id, duration)
    return profile
