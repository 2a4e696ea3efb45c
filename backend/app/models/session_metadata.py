from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base, UTCDateTime


class SessionMetadata(Base):
    """The admin-configured window during which guests may attend a venue.

    Notes:
    - At most one active row per venue, enforced by a partial unique index.
    - Deactivation is terminal; the next night gets a new row.
    """

    __tablename__ = "session_metadata"
    __table_args__ = (
        Index(
            "uq_session_metadata_one_active",
            "venue_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), index=True)

    session_name: Mapped[str] = mapped_column(String(120), nullable=False)
    session_description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    session_type: Mapped[str] = mapped_column(String(16), nullable=False, default="event")
    duration_hours: Mapped[int] = mapped_column(Integer, nullable=False)

    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    venue = relationship("Venue")
