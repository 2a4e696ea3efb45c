from datetime import datetime

from sqlalchemy import Boolean, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base, UTCDateTime


class Profile(Base):
    __tablename__ = "profiles"

    # opaque id issued by the identity provider
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    display_name: Mapped[str] = mapped_column(String(80), nullable=False)
    bio: Mapped[str | None] = mapped_column(String(240), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # храним строкой, а в коде валидируем enum-ом
    system_role: Mapped[str] = mapped_column(String(32), default="NONE", nullable=False)

    # venue moderation
    blocked_until: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    blocked_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    blocked_permanently: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # set en masse when a session ends, cleared on re-entry
    is_deactivated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deactivated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, server_default=func.now())
    last_seen_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
