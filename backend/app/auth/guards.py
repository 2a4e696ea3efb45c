from __future__ import annotations

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.auth.deps import get_current_profile
from app.core.db import get_db
from app.models.profile import Profile
from app.services.access import is_staff


def require_super_admin(profile: Profile = Depends(get_current_profile)) -> Profile:
    if profile.system_role != "SUPER_ADMIN":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="SUPER_ADMIN required",
        )
    return profile


def require_venue_staff(
    venue_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
) -> Profile:
    """Path-scoped guard: caller must be staff of {venue_id} or hold a system role."""
    if not is_staff(db, profile, venue_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return profile
