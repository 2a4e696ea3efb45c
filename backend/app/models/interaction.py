from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base, UTCDateTime


class Interaction(Base):
    """A directed like/invite. Rows are never deleted, only resolved."""

    __tablename__ = "interactions"
    __table_args__ = (
        CheckConstraint("sender_id <> receiver_id", name="ck_interactions_not_self"),
        Index(
            "uq_interactions_one_pending",
            "sender_id",
            "receiver_id",
            "interaction_type",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_interactions_pair_created", "sender_id", "receiver_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    attendance_id: Mapped[int | None] = mapped_column(ForeignKey("attendances.id"), nullable=True, index=True)
    sender_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)
    receiver_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)

    interaction_type: Mapped[str] = mapped_column(String(16), nullable=False)  # like/invite
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    message: Mapped[str | None] = mapped_column(String(240), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    attendance = relationship("Attendance")
