from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models import SessionMetadata
from app.stores.base import insert_or_fetch


class SessionStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, session_id: int) -> SessionMetadata | None:
        return self.db.get(SessionMetadata, session_id)

    def latest_active(self, venue_id: int) -> SessionMetadata | None:
        return self.db.execute(
            select(SessionMetadata)
            .where(SessionMetadata.venue_id == venue_id, SessionMetadata.is_active.is_(True))
            .order_by(SessionMetadata.created_at.desc(), SessionMetadata.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def insert_active(self, row: SessionMetadata) -> tuple[SessionMetadata, bool]:
        return insert_or_fetch(self.db, row, lambda: self.latest_active(row.venue_id))

    def claim_close(self, session_id: int, *, now: datetime) -> bool:
        """Flip is_active off only if it is still on. True for the one caller that did it."""
        res = self.db.execute(
            update(SessionMetadata)
            .where(SessionMetadata.id == session_id, SessionMetadata.is_active.is_(True))
            .values(is_active=False, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def venue_ids_with_active(self) -> list[int]:
        return list(
            self.db.execute(
                select(SessionMetadata.venue_id).where(SessionMetadata.is_active.is_(True)).distinct()
            ).scalars()
        )
