from __future__ import annotations

from typing import Literal, Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.auth.deps import get_current_profile
from app.auth.guards import require_super_admin, require_venue_staff
from app.core.clock import Clock, get_clock
from app.core.db import get_db
from app.models import Profile, SessionType, VenueMember, VenueRole
from app.routers.common import profile_out, session_out, venue_out
from app.services import sessions
from app.services.dashboard import venue_dashboard
from app.services.moderation import set_guest_status
from app.services.venues import add_member, create_venue, update_member

router = APIRouter(prefix="/venues", tags=["venues"])


# ---------- Schemas ----------

class VenueCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=80)
    owner_ids: Optional[List[str]] = None


class SessionCreateIn(BaseModel):
    session_name: str = Field(..., min_length=1, max_length=120)
    duration_hours: int = Field(..., ge=1, le=sessions.MAX_DURATION_HOURS)
    session_type: SessionType = SessionType.EVENT
    session_description: str | None = Field(default=None, max_length=500)


class SessionUpdateIn(BaseModel):
    duration_hours: int = Field(..., ge=1, le=sessions.MAX_DURATION_HOURS)
    session_name: str | None = Field(default=None, min_length=1, max_length=120)


class MemberAddIn(BaseModel):
    profile_id: str = Field(..., min_length=1, max_length=64)
    venue_role: VenueRole = VenueRole.STAFF
    show_in_guest_feed: bool | None = None


class MemberUpdateIn(BaseModel):
    show_in_guest_feed: bool | None = None
    is_active: bool | None = None


class GuestStatusIn(BaseModel):
    action: Literal["block", "unblock"]
    duration: Literal["1h", "24h", "7d", "permanent"] | None = None
    reason: str | None = Field(default=None, max_length=200)


# ---------- Helpers ----------

def _is_owner_or_super_admin(db: Session, *, venue_id: int, profile: Profile) -> bool:
    if profile.system_role == "SUPER_ADMIN":
        return True

    m = db.query(VenueMember).filter(
        VenueMember.venue_id == venue_id,
        VenueMember.profile_id == profile.id,
        VenueMember.is_active.is_(True),
    ).one_or_none()

    return bool(m and m.venue_role == "OWNER")


def _require_owner_or_super_admin(db: Session, *, venue_id: int, profile: Profile) -> None:
    if not _is_owner_or_super_admin(db, venue_id=venue_id, profile=profile):
        raise HTTPException(status_code=403, detail="Forbidden")


def _member_out(m: VenueMember) -> dict:
    return {
        "venue_id": m.venue_id,
        "profile_id": m.profile_id,
        "venue_role": m.venue_role,
        "is_active": bool(m.is_active),
        "show_in_guest_feed": bool(m.show_in_guest_feed),
    }


# ---------- Venues ----------

@router.post("", status_code=status.HTTP_201_CREATED)
def create_venue_admin_only(
    payload: VenueCreateIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_super_admin),
):
    venue = create_venue(
        db,
        name=payload.name,
        slug=payload.slug,
        owner_ids=payload.owner_ids,
    )
    return venue_out(venue)


# ---------- Sessions ----------

@router.post("/{venue_id}/sessions", status_code=status.HTTP_201_CREATED)
def start_session(
    venue_id: int,
    payload: SessionCreateIn,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(require_venue_staff),
):
    row = sessions.start_session(
        db,
        venue_id,
        name=payload.session_name.strip(),
        duration_hours=payload.duration_hours,
        now=clock(),
        session_type=payload.session_type.value,
        description=payload.session_description,
    )
    return session_out(row)


@router.patch("/{venue_id}/sessions/{session_id}")
def extend_session(
    venue_id: int,
    session_id: int,
    payload: SessionUpdateIn,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(require_venue_staff),
):
    row = sessions.extend_session(
        db,
        session_id,
        duration_hours=payload.duration_hours,
        now=clock(),
        venue_id=venue_id,
        name=payload.session_name,
    )
    return session_out(row)


@router.post("/{venue_id}/sessions/{session_id}/deactivate")
def deactivate_session(
    venue_id: int,
    session_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(require_venue_staff),
):
    """End the night now. Safe to call twice."""
    row = sessions.deactivate_now(db, session_id, now=clock(), venue_id=venue_id)
    return session_out(row)


# ---------- Members ----------

@router.post("/{venue_id}/members")
def add_venue_member(
    venue_id: int,
    payload: MemberAddIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    _require_owner_or_super_admin(db, venue_id=venue_id, profile=profile)

    mem = add_member(
        db,
        venue_id,
        payload.profile_id,
        venue_role=payload.venue_role.value,
        show_in_guest_feed=payload.show_in_guest_feed,
    )
    return _member_out(mem)


@router.patch("/{venue_id}/members/{profile_id}")
def update_venue_member(
    venue_id: int,
    profile_id: str,
    payload: MemberUpdateIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_venue_staff),
):
    # staff may toggle their own feed visibility, everything else is for owners
    own_feed_toggle = profile_id == profile.id and payload.is_active is None
    if not own_feed_toggle:
        _require_owner_or_super_admin(db, venue_id=venue_id, profile=profile)

    mem = update_member(
        db,
        venue_id,
        profile_id,
        show_in_guest_feed=payload.show_in_guest_feed,
        is_active=payload.is_active,
    )
    return _member_out(mem)


# ---------- Guests / dashboard ----------

@router.patch("/{venue_id}/guests/{profile_id}")
def update_guest_status(
    venue_id: int,
    profile_id: str,
    payload: GuestStatusIn,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(require_venue_staff),
):
    guest = set_guest_status(
        db,
        venue_id,
        profile_id,
        action=payload.action,
        now=clock(),
        duration=payload.duration,
        reason=payload.reason,
    )
    return profile_out(guest)


@router.get("/{venue_id}/dashboard")
def dashboard(
    venue_id: int,
    hours: int = Query(default=24, ge=1, le=72),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(require_venue_staff),
):
    return venue_dashboard(db, venue_id, now=clock(), hours=hours)
