from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.auth.deps import get_current_profile, get_principal_id
from app.core.clock import Clock, get_clock
from app.core.config import settings
from app.core.db import get_db
from app.models import Profile
from app.routers.common import attendance_out, interaction_out, match_out, profile_out
from app.services import matcher
from app.stores import AttendanceStore, ProfileStore

router = APIRouter(tags=["me"])


class ProfileUpsertIn(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=80)
    bio: str | None = Field(default=None, max_length=240)
    phone_number: str | None = Field(default=None, max_length=32, pattern=r"^\+?[0-9 ()-]{5,32}$")
    is_private: bool = False


@router.get("/me")
def me(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    active = AttendanceStore(db).active_for_profile(profile.id)
    out = profile_out(profile)
    out["attendance"] = attendance_out(active) if active is not None else None
    return out


@router.put("/me/profile")
def upsert_profile(
    payload: ProfileUpsertIn,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    profile_id: str = Depends(get_principal_id),
):
    """First call creates the profile for the identity-provider subject."""
    display_name = payload.display_name.strip()
    profile, _ = ProfileStore(db).get_or_create(profile_id, display_name=display_name, now=clock())

    profile.display_name = display_name
    profile.bio = (payload.bio or "").strip() or None
    profile.phone_number = (payload.phone_number or "").strip() or None
    profile.is_private = payload.is_private
    if profile_id in settings.super_admin_ids():
        profile.system_role = "SUPER_ADMIN"

    db.commit()
    db.refresh(profile)
    return profile_out(profile)


@router.get("/me/interactions")
def my_interactions(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    grouped = matcher.list_interactions(db, profile.id)
    return {k: [interaction_out(i) for i in rows] for k, rows in grouped.items()}


@router.get("/me/matches")
def my_matches(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return [match_out(m, profile.id) for m in matcher.list_matches(db, profile.id)]
