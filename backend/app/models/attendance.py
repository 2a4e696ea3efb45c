from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base, UTCDateTime


class Attendance(Base):
    """One guest's presence window at a venue."""

    __tablename__ = "attendances"
    __table_args__ = (
        # a profile is inside at most one venue at a time
        Index(
            "uq_attendances_one_active",
            "profile_id",
            unique=True,
            postgresql_where=text("status = 'active' AND exited_at IS NULL"),
            sqlite_where=text("status = 'active' AND exited_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    profile_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), index=True)
    session_id: Mapped[int | None] = mapped_column(ForeignKey("session_metadata.id"), nullable=True, index=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")  # active/inactive
    entered_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    exited_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    profile = relationship("Profile")
    venue = relationship("Venue")
