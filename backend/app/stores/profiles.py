from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models import Profile, VenueMember
from app.stores.base import insert_or_fetch


class ProfileStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, profile_id: str) -> Profile | None:
        return self.db.get(Profile, profile_id)

    def get_or_create(self, profile_id: str, *, display_name: str, now: datetime) -> tuple[Profile, bool]:
        profile = self.get(profile_id)
        if profile is not None:
            return profile, False
        row = Profile(id=profile_id, display_name=display_name, created_at=now)
        return insert_or_fetch(self.db, row, lambda: self.get(profile_id))

    def get_many(self, profile_ids) -> dict[str, Profile]:
        ids = list(set(profile_ids))
        if not ids:
            return {}
        rows = self.db.execute(select(Profile).where(Profile.id.in_(ids))).scalars().all()
        return {p.id: p for p in rows}

    def lock_pair(self, a: str, b: str) -> None:
        """Row-lock both profiles in canonical order (no-op on SQLite)."""
        self.db.execute(
            select(Profile.id).where(Profile.id.in_([a, b])).order_by(Profile.id).with_for_update()
        ).all()

    def deactivate_guests(self, venue_id: int, profile_ids: list[str], *, now: datetime) -> int:
        """Deactivate attendees that are not staff of this venue."""
        if not profile_ids:
            return 0
        staff_ids = select(VenueMember.profile_id).where(
            VenueMember.venue_id == venue_id,
            VenueMember.is_active.is_(True),
        )
        res = self.db.execute(
            update(Profile)
            .where(
                Profile.id.in_(profile_ids),
                Profile.id.not_in(staff_ids),
                Profile.system_role == "NONE",
                Profile.is_deactivated.is_(False),
            )
            .values(is_deactivated=True, deactivated_at=now)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount or 0

    def reactivate(self, profile: Profile, *, now: datetime) -> None:
        profile.is_deactivated = False
        profile.deactivated_at = None
        profile.last_seen_at = now
