from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.auth.deps import get_current_profile, get_optional_principal_id
from app.core.clock import Clock, get_clock
from app.core.config import settings
from app.core.db import get_db
from app.core.errors import NoActiveSession, VenueNotFound
from app.models import InteractionType, Decision, Profile, Venue
from app.routers.common import (
    attendance_out,
    interaction_out,
    match_out,
    session_out,
    summary_out,
    venue_out,
)
from app.services import matcher, sessions
from app.services.feed import build_feed
from app.services.venues import get_venue_by_slug
from app.stores import AttendanceStore

router = APIRouter(tags=["guest"])


# ---------- Schemas ----------

class InteractionCreateIn(BaseModel):
    receiver_id: str = Field(..., min_length=1, max_length=64)
    type: InteractionType
    attendance_id: int = Field(..., gt=0)
    message: str | None = Field(default=None, max_length=240)


class InteractionRespondIn(BaseModel):
    decision: Decision


class BlockCreateIn(BaseModel):
    blocked_id: str = Field(..., min_length=1, max_length=64)


# ---------- Helpers ----------

def _require_venue(db: Session, venue_id: int) -> Venue:
    venue = db.get(Venue, venue_id)
    if venue is None:
        raise VenueNotFound()
    return venue


# ---------- Venue presence ----------

@router.get("/join/{slug}")
def join_venue(
    slug: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile_id: str | None = Depends(get_optional_principal_id),
):
    """Public landing for the venue QR code: is there a night going on?"""
    venue = get_venue_by_slug(db, slug)
    active = sessions.get_active_session(db, venue.id, now=clock())

    inside = False
    if profile_id and active is not None:
        mine = AttendanceStore(db).active_for_profile(profile_id)
        inside = mine is not None and mine.venue_id == venue.id
    return {"venue": venue_out(venue), "session": session_out(active), "inside": inside}


@router.get("/venues/{venue_id}/session")
def current_session(
    venue_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(get_current_profile),
):
    _require_venue(db, venue_id)
    active = sessions.get_active_session(db, venue_id, now=clock())
    if active is None:
        raise NoActiveSession()
    return session_out(active)


@router.post("/venues/{venue_id}/enter")
def enter_venue(
    venue_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(get_current_profile),
):
    _require_venue(db, venue_id)
    row = sessions.ensure_attendance(db, venue_id, profile.id, now=clock())
    return attendance_out(row)


@router.post("/venues/{venue_id}/leave")
def leave_venue(
    venue_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(get_current_profile),
):
    left = sessions.leave_venue(db, venue_id, profile.id, now=clock())
    return {"ok": True, "left": left}


@router.get("/venues/{venue_id}/feed")
def venue_feed(
    venue_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(get_current_profile),
):
    _require_venue(db, venue_id)
    now = clock()
    if sessions.get_active_session(db, venue_id, now=now) is None:
        raise NoActiveSession()

    me = AttendanceStore(db).active_for_profile(profile.id)
    cards = build_feed(
        db,
        venue_id,
        profile.id,
        now=now,
        include_connected_private=settings.FEED_SHOW_CONNECTED_PRIVATE,
    )
    return {
        "venue_id": venue_id,
        "attendance_id": me.id if me is not None and me.venue_id == venue_id else None,
        "profiles": [summary_out(c) for c in cards],
    }


# ---------- Interactions ----------

@router.post("/interactions", status_code=status.HTTP_201_CREATED)
def send_interaction(
    payload: InteractionCreateIn,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(get_current_profile),
):
    row = matcher.send_interaction(
        db,
        profile.id,
        payload.receiver_id,
        payload.type.value,
        payload.attendance_id,
        now=clock(),
        message=(payload.message or "").strip() or None,
        require_phone=settings.REQUIRE_PHONE_TO_INTERACT,
    )
    return interaction_out(row)


@router.post("/interactions/{interaction_id}/respond")
def respond_interaction(
    interaction_id: int,
    payload: InteractionRespondIn,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(get_current_profile),
):
    outcome = matcher.respond_to_interaction(
        db,
        profile.id,
        interaction_id,
        payload.decision.value,
        now=clock(),
    )
    return {
        "interaction": interaction_out(outcome.interaction),
        "match": match_out(outcome.match, profile.id),
        "already_resolved": outcome.already_resolved,
    }


# ---------- Matches / blocks ----------

@router.delete("/matches/{match_id}")
def unmatch(
    match_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    matcher.unmatch(db, match_id, profile.id)
    return {"ok": True}


@router.post("/blocks")
def block_profile(
    payload: BlockCreateIn,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile: Profile = Depends(get_current_profile),
):
    matcher.block_profile(db, profile.id, payload.blocked_id, now=clock())
    return {"ok": True}
