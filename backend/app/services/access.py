from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Profile, VenueMember
from app.stores import BlockStore, InteractionStore, MatchStore


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a < b else (b, a)


def is_suspended(profile: Profile, now: datetime) -> bool:
    if profile.blocked_permanently:
        return True
    return profile.blocked_until is not None and profile.blocked_until > now


def is_staff(db: Session, profile: Profile, venue_id: int) -> bool:
    if profile.system_role != "NONE":
        return True
    m = db.execute(
        select(VenueMember.id).where(
            VenueMember.venue_id == venue_id,
            VenueMember.profile_id == profile.id,
            VenueMember.is_active.is_(True),
        )
    ).first()
    return m is not None


def blocked_ids(db: Session, profile_id: str) -> set[str]:
    return BlockStore(db).related_ids(profile_id)


def is_blocked_pair(db: Session, a: str, b: str) -> bool:
    return BlockStore(db).exists_between(a, b)


def connected_ids(db: Session, viewer_id: str) -> set[str]:
    """Profiles the viewer is already talking to: open interaction or match."""
    out: set[str] = set()
    for it in InteractionStore(db).open_involving(viewer_id):
        out.add(it.receiver_id if it.sender_id == viewer_id else it.sender_id)
    for m in MatchStore(db).for_profile(viewer_id):
        out.add(m.profile_b if m.profile_a == viewer_id else m.profile_a)
    return out
