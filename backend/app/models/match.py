from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base, UTCDateTime


class Match(Base):
    """Symmetric pairing; profile_a < profile_b always."""

    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("profile_a", "profile_b", name="uq_matches_pair"),
        CheckConstraint("profile_a < profile_b", name="ck_matches_canonical"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    interaction_id: Mapped[int] = mapped_column(ForeignKey("interactions.id"), index=True)
    profile_a: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)
    profile_b: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)

    contact_link: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    interaction = relationship("Interaction")
