"""Append-only bookkeeping records."""

from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from photoshare.core.timing import now_ms
from photoshare.db.base import Base


class EventAudit(Base):
    """Snapshot written exactly once when an event is deleted."""

    __tablename__ = "event_audit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, index=True)
    owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    created_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    deleted_at: Mapped[int] = mapped_column(BigInteger, default=now_ms)
    total_photos_at_delete: Mapped[int] = mapped_column(Integer, default=0)
    deleted_photos_cumulative: Mapped[int] = mapped_column(Integer, default=0)


class PhotoDeletion(Base):
    """One row per removed photo."""

    __tablename__ = "photo_deletions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    photo_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    deleted_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, index=True)


class PhotoUploadHistory(Base):
    """One row per stored upload; survives photo deletion."""

    __tablename__ = "photo_uploads_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, index=True)
    photo_id: Mapped[int] = mapped_column(Integer)
    owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    uploaded_at: Mapped[int] = mapped_column(BigInteger, default=now_ms, index=True)


class OrphanedFile(Base):
    """Dead-letter entry for a file operation that exhausted its retries."""

    __tablename__ = "orphaned_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(String(1024))
    operation: Mapped[str] = mapped_column(String(32))
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, default=now_ms)
