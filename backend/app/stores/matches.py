from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from app.models import Match
from app.stores.base import insert_or_fetch


class MatchStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, match_id: int) -> Match | None:
        return self.db.get(Match, match_id)

    def for_pair(self, profile_a: str, profile_b: str) -> Match | None:
        return self.db.execute(
            select(Match).where(Match.profile_a == profile_a, Match.profile_b == profile_b)
        ).scalar_one_or_none()

    def insert_once(
        self,
        *,
        interaction_id: int,
        profile_a: str,
        profile_b: str,
        contact_link: str | None,
        now: datetime,
    ) -> tuple[Match, bool]:
        row = Match(
            interaction_id=interaction_id,
            profile_a=profile_a,
            profile_b=profile_b,
            contact_link=contact_link,
            created_at=now,
        )
        return insert_or_fetch(self.db, row, lambda: self.for_pair(profile_a, profile_b))

    def delete(self, match: Match) -> None:
        self.db.delete(match)

    def delete_pair(self, profile_a: str, profile_b: str) -> int:
        res = self.db.execute(
            delete(Match)
            .where(Match.profile_a == profile_a, Match.profile_b == profile_b)
            .execution_options(synchronize_session="fetch")
        )
        return res.rowcount or 0

    def for_profile(self, profile_id: str) -> list[Match]:
        return list(
            self.db.execute(
                select(Match)
                .where(or_(Match.profile_a == profile_id, Match.profile_b == profile_id))
                .order_by(Match.created_at.desc(), Match.id.desc())
            ).scalars()
        )

    def created_since(self, since: datetime) -> list[Match]:
        return list(self.db.execute(select(Match).where(Match.created_at >= since)).scalars())
