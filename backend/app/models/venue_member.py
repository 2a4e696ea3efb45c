from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base


class VenueMember(Base):
    __tablename__ = "venue_members"
    __table_args__ = (
        UniqueConstraint("venue_id", "profile_id", name="uq_venue_member"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    venue_id: Mapped[int] = mapped_column(ForeignKey("venues.id"), index=True)
    profile_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)

    venue_role: Mapped[str] = mapped_column(String(32), nullable=False)  # OWNER/STAFF
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # staff may opt in to be visible to guests
    show_in_guest_feed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    venue = relationship("Venue", back_populates="members")
    profile = relationship("Profile")
