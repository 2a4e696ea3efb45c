from datetime import datetime

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base, UTCDateTime


class Block(Base):
    __tablename__ = "blocks"
    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_blocks_pair"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    blocker_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)
    blocked_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
