from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from app.models import Interaction
from app.stores.base import insert_or_fetch

OPEN_STATUSES = ("pending", "accepted")


class InteractionStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, interaction_id: int) -> Interaction | None:
        return self.db.get(Interaction, interaction_id)

    def pending(self, sender_id: str, receiver_id: str, interaction_type: str) -> Interaction | None:
        return self.db.execute(
            select(Interaction).where(
                Interaction.sender_id == sender_id,
                Interaction.receiver_id == receiver_id,
                Interaction.interaction_type == interaction_type,
                Interaction.status == "pending",
            )
        ).scalar_one_or_none()

    def insert_pending(self, row: Interaction) -> tuple[Interaction, bool]:
        return insert_or_fetch(
            self.db,
            row,
            lambda: self.pending(row.sender_id, row.receiver_id, row.interaction_type),
        )

    def resolve(self, interaction_id: int, *, status: str, responded_at: datetime) -> bool:
        """pending -> status, only if still pending. True for the caller that won."""
        res = self.db.execute(
            update(Interaction)
            .where(Interaction.id == interaction_id, Interaction.status == "pending")
            .values(status=status, responded_at=responded_at)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def latest_accepted(self, sender_id: str, receiver_id: str) -> Interaction | None:
        return self.db.execute(
            select(Interaction)
            .where(
                Interaction.sender_id == sender_id,
                Interaction.receiver_id == receiver_id,
                Interaction.status == "accepted",
            )
            .order_by(Interaction.created_at.desc(), Interaction.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def open_involving(self, profile_id: str) -> list[Interaction]:
        """Pending/accepted rows in either direction, newest first."""
        return list(
            self.db.execute(
                select(Interaction)
                .where(
                    or_(Interaction.sender_id == profile_id, Interaction.receiver_id == profile_id),
                    Interaction.status.in_(OPEN_STATUSES),
                )
                .order_by(Interaction.created_at.desc(), Interaction.id.desc())
            ).scalars()
        )

    def incoming(self, profile_id: str) -> list[Interaction]:
        return list(
            self.db.execute(
                select(Interaction)
                .where(Interaction.receiver_id == profile_id)
                .order_by(Interaction.created_at.desc(), Interaction.id.desc())
            ).scalars()
        )

    def outgoing(self, profile_id: str) -> list[Interaction]:
        return list(
            self.db.execute(
                select(Interaction)
                .where(Interaction.sender_id == profile_id)
                .order_by(Interaction.created_at.desc(), Interaction.id.desc())
            ).scalars()
        )
