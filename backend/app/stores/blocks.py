from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.models import Block
from app.stores.base import insert_or_fetch


class BlockStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, blocker_id: str, blocked_id: str) -> Block | None:
        return self.db.execute(
            select(Block).where(Block.blocker_id == blocker_id, Block.blocked_id == blocked_id)
        ).scalar_one_or_none()

    def insert_once(self, *, blocker_id: str, blocked_id: str, now: datetime) -> tuple[Block, bool]:
        row = Block(blocker_id=blocker_id, blocked_id=blocked_id, created_at=now)
        return insert_or_fetch(self.db, row, lambda: self.get(blocker_id, blocked_id))

    def exists_between(self, a: str, b: str) -> bool:
        row = self.db.execute(
            select(Block.id)
            .where(
                or_(
                    and_(Block.blocker_id == a, Block.blocked_id == b),
                    and_(Block.blocker_id == b, Block.blocked_id == a),
                )
            )
            .limit(1)
        ).first()
        return row is not None

    def related_ids(self, profile_id: str) -> set[str]:
        """Everyone this profile blocked or was blocked by."""
        rows = self.db.execute(
            select(Block.blocker_id, Block.blocked_id).where(
                or_(Block.blocker_id == profile_id, Block.blocked_id == profile_id)
            )
        ).all()
        out: set[str] = set()
        for blocker_id, blocked_id in rows:
            out.add(blocked_id if blocker_id == profile_id else blocker_id)
        return out
