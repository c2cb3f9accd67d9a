"""Event model for photo collection sessions."""

from enum import Enum

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from photoshare.core.timing import now_ms
from photoshare.db.base import Base


class EventStatus(str, Enum):
    """Lifecycle status of an event. ENDED is terminal."""

    SCHEDULED = "scheduled"
    LIVE = "live"
    PAUSED = "paused"
    ENDED = "ended"


DEFAULT_BRANDING_COLOR = "#f5f5f5"


class Event(Base):
    """Event database model."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    date: Mapped[str] = mapped_column(String(32), default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Sharing
    qr_code: Mapped[str | None] = mapped_column(Text, nullable=True)  # PNG data URL
    access_link: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # Settings
    require_moderation: Mapped[bool] = mapped_column(Boolean, default=False)
    upload_access: Mapped[str] = mapped_column(String(32), default="all")
    view_access: Mapped[str] = mapped_column(String(32), default="link")
    auto_delete_days: Mapped[int] = mapped_column(Integer, default=14)
    notify_before_delete: Mapped[bool] = mapped_column(Boolean, default=False)

    # Counters
    photo_count: Mapped[int] = mapped_column(Integer, default=0)
    like_count: Mapped[int] = mapped_column(Integer, default=0)
    deleted_photo_count: Mapped[int] = mapped_column(Integer, default=0)

    # Branding
    branding_color: Mapped[str | None] = mapped_column(
        String(32), nullable=True, default=DEFAULT_BRANDING_COLOR
    )
    branding_background: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # Lifecycle (Unix timestamps in ms)
    status: Mapped[str] = mapped_column(
        String(16), default=EventStatus.SCHEDULED.value, index=True
    )
    scheduled_start_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    auto_end_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms)

    __table_args__ = (Index("ix_events_owner_created", "owner_id", "created_at"),)
