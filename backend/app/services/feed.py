from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import translate_store_errors
from app.models import VenueMember
from app.services.access import blocked_ids, connected_ids, is_suspended
from app.stores import AttendanceStore, InteractionStore, MatchStore, ProfileStore


@dataclass(frozen=True)
class ProfileSummary:
    profile_id: str
    display_name: str
    bio: str | None
    is_staff: bool
    entered_at: datetime | None
    liked_by_viewer: bool = False
    invited_by_viewer: bool = False
    they_liked_viewer: bool = False
    is_matched: bool = False


def _feed_staff_ids(db: Session, venue_id: int) -> list[str]:
    return list(
        db.execute(
            select(VenueMember.profile_id)
            .where(
                VenueMember.venue_id == venue_id,
                VenueMember.is_active.is_(True),
                VenueMember.show_in_guest_feed.is_(True),
            )
            .order_by(VenueMember.id.asc())
        ).scalars()
    )


@translate_store_errors
def build_feed(
    db: Session,
    venue_id: int,
    viewer_id: str,
    *,
    now: datetime,
    include_connected_private: bool = True,
) -> list[ProfileSummary]:
    """Who the viewer may see at this venue right now. Read only.

    Attendees come first (newest entry first), then staff who opted in.
    A private profile is shown only when `include_connected_private` is on and
    the viewer already has an open interaction or a match with it.
    """
    candidates: list[tuple[str, datetime | None]] = [
        (a.profile_id, a.entered_at) for a in AttendanceStore(db).active_for_venue(venue_id)
    ]
    staff_ids = _feed_staff_ids(db, venue_id)
    candidates += [(pid, None) for pid in staff_ids]
    staff_set = set(staff_ids)

    profiles = ProfileStore(db).get_many(pid for pid, _ in candidates)
    hidden = blocked_ids(db, viewer_id)

    liked: set[str] = set()
    invited: set[str] = set()
    they_liked: set[str] = set()
    for it in InteractionStore(db).open_involving(viewer_id):
        if it.sender_id == viewer_id:
            if it.interaction_type == "like":
                liked.add(it.receiver_id)
            else:
                invited.add(it.receiver_id)
        elif it.interaction_type == "like":
            they_liked.add(it.sender_id)

    matched = {
        m.profile_b if m.profile_a == viewer_id else m.profile_a
        for m in MatchStore(db).for_profile(viewer_id)
    }
    connected = connected_ids(db, viewer_id) if include_connected_private else set()

    out: list[ProfileSummary] = []
    seen: set[str] = set()
    for pid, entered_at in candidates:
        if pid == viewer_id or pid in hidden or pid in seen:
            continue
        p = profiles.get(pid)
        if p is None:
            continue
        if p.is_private and pid not in connected:
            continue
        if is_suspended(p, now):
            continue

        seen.add(pid)
        out.append(
            ProfileSummary(
                profile_id=pid,
                display_name=p.display_name,
                bio=p.bio,
                is_staff=pid in staff_set,
                entered_at=entered_at,
                liked_by_viewer=pid in liked,
                invited_by_viewer=pid in invited,
                they_liked_viewer=pid in they_liked,
                is_matched=pid in matched,
            )
        )
    return out
