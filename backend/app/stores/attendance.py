from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models import Attendance
from app.stores.base import insert_or_fetch


class AttendanceStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, attendance_id: int) -> Attendance | None:
        return self.db.get(Attendance, attendance_id)

    def active_for_profile(self, profile_id: str) -> Attendance | None:
        return self.db.execute(
            select(Attendance)
            .where(
                Attendance.profile_id == profile_id,
                Attendance.status == "active",
                Attendance.exited_at.is_(None),
            )
            .order_by(Attendance.entered_at.desc())
            .limit(1)
        ).scalar_one_or_none()

    def insert_active(self, *, profile_id: str, venue_id: int, session_id: int | None, now: datetime) -> tuple[Attendance, bool]:
        row = Attendance(
            profile_id=profile_id,
            venue_id=venue_id,
            session_id=session_id,
            status="active",
            entered_at=now,
        )
        return insert_or_fetch(self.db, row, lambda: self.active_for_profile(profile_id))

    def active_for_venue(self, venue_id: int) -> list[Attendance]:
        return list(
            self.db.execute(
                select(Attendance)
                .where(
                    Attendance.venue_id == venue_id,
                    Attendance.status == "active",
                    Attendance.exited_at.is_(None),
                )
                .order_by(Attendance.entered_at.desc(), Attendance.id.desc())
            ).scalars()
        )

    def exit_all_for_venue(self, venue_id: int, *, now: datetime) -> list[str]:
        """Close every open attendance of the venue; returns affected profile ids."""
        open_rows = self.db.execute(
            select(Attendance.id, Attendance.profile_id).where(
                Attendance.venue_id == venue_id,
                Attendance.status == "active",
                Attendance.exited_at.is_(None),
            )
        ).all()
        if not open_rows:
            return []
        self.db.execute(
            update(Attendance)
            .where(
                Attendance.id.in_([r.id for r in open_rows]),
                Attendance.status == "active",
                Attendance.exited_at.is_(None),
            )
            .values(status="inactive", exited_at=now)
            .execution_options(synchronize_session=False)
        )
        return [r.profile_id for r in open_rows]

    def exit_one(self, attendance_id: int, *, now: datetime) -> bool:
        res = self.db.execute(
            update(Attendance)
            .where(
                Attendance.id == attendance_id,
                Attendance.status == "active",
                Attendance.exited_at.is_(None),
            )
            .values(status="inactive", exited_at=now)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def count_active(self, venue_id: int) -> int:
        return self.db.execute(
            select(func.count(Attendance.id)).where(
                Attendance.venue_id == venue_id,
                Attendance.status == "active",
                Attendance.exited_at.is_(None),
            )
        ).scalar_one()

    def ids_for_venue(self, venue_id: int) -> set[int]:
        return set(self.db.execute(select(Attendance.id).where(Attendance.venue_id == venue_id)).scalars())

    def entered_since(self, venue_id: int, since: datetime) -> list[datetime]:
        return list(
            self.db.execute(
                select(Attendance.entered_at).where(
                    Attendance.venue_id == venue_id,
                    Attendance.entered_at >= since,
                )
            ).scalars()
        )
