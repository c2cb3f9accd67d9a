"""Photo model for uploaded media."""

from enum import Enum

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from photoshare.core.timing import now_ms
from photoshare.db.base import Base


class PhotoStatus(str, Enum):
    """Moderation state of uploaded media."""

    PENDING = "pending"
    APPROVED = "approved"


class Photo(Base):
    """Uploaded photo or video. Paths are relative to the uploads root."""

    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("events.id"), nullable=True, index=True
    )
    filename: Mapped[str] = mapped_column(String(1024))
    preview_filename: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    original_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    media_type: Mapped[str] = mapped_column(String(16), default="image")
    status: Mapped[str] = mapped_column(String(16), default=PhotoStatus.PENDING.value)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    uploaded_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, index=True)

    __table_args__ = (Index("ix_photos_event_status", "event_id", "status"),)

    @property
    def display_preview(self) -> str:
        """Preview path, falling back to the original."""
        return self.preview_filename or self.filename
