"""Photo service for uploads, listings and downloads."""

import asyncio
import re
import zipfile
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path, PurePosixPath

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.core.timing import now_ms
from photoshare.models.audit import PhotoUploadHistory
from photoshare.models.event import Event, EventStatus
from photoshare.models.photo import Photo, PhotoStatus
from photoshare.models.user import User
from photoshare.schemas.photo import PhotoDTO
from photoshare.services.base_service import BaseService
from photoshare.services.event_status import normalize_status
from photoshare.services.media import (
    event_folder_name,
    generate_preview,
    max_size_for,
    media_kind,
    safe_filename,
    upload_subdir,
)
from photoshare.services.sharing import uploads_url
from photoshare.services.storage import FileStorage
from photoshare.workers.file_cleanup import CleanupJob, FileCleanupWorker

UPLOAD_BLOCKED_MESSAGES = {
    EventStatus.ENDED: "Event has ended. Uploads are closed.",
    EventStatus.SCHEDULED: "Event has not started yet. Uploads are closed.",
    EventStatus.PAUSED: "Event is paused. Uploads are closed.",
}


@dataclass
class IncomingFile:
    """An uploaded file read into memory."""

    filename: str
    content_type: str
    data: bytes


def photo_to_dto(photo: Photo, base_url: str = "") -> PhotoDTO:
    dto = PhotoDTO.model_validate(photo)
    dto.url = uploads_url(base_url, photo.filename)
    dto.preview_url = uploads_url(base_url, photo.display_preview)
    return dto


def upload_blocked_reason(event: Event) -> str | None:
    """Why guests cannot upload to ``event`` right now, None when live."""
    return UPLOAD_BLOCKED_MESSAGES.get(normalize_status(event.status))


def upload_problem(filename: str, content_type: str | None, size: int | None) -> str | None:
    """Why a single upload is refused, judged from its declared type and size."""
    kind = media_kind(content_type)
    if kind is None:
        return f"Unsupported file type: {content_type or 'unknown'}"
    if size is not None and size > max_size_for(kind):
        return f"File too large: {filename}"
    return None


def validate_uploads(files: list[IncomingFile]) -> str | None:
    """First validation problem in a batch of uploads, None when acceptable."""
    if not files:
        return "No files uploaded"
    for f in files:
        problem = upload_problem(f.filename, f.content_type, len(f.data))
        if problem:
            return problem
    return None


class PhotoService(BaseService[Photo]):
    """Photo service for ingest and read-side queries."""

    def __init__(
        self,
        db: AsyncSession,
        storage: FileStorage,
        cleanup: FileCleanupWorker | None = None,
    ):
        super().__init__(db, Photo)
        self.storage = storage
        self.cleanup = cleanup

    async def store_uploads(self, event: Event, files: list[IncomingFile]) -> list[Photo]:
        """Write files, previews and rows for a validated batch.

        New rows start pending when the event requires moderation. The
        event's ``photo_count`` is incremented in SQL by the number stored.
        """
        folder = event_folder_name(event.id, event.name, event.created_at)
        subdir = upload_subdir(folder, bool(event.require_moderation))
        status = (
            PhotoStatus.PENDING.value if event.require_moderation else PhotoStatus.APPROVED.value
        )

        written: list[str] = []
        photos: list[Photo] = []
        try:
            for f in files:
                relative = await self._free_name(subdir, safe_filename(f.filename))
                await self.storage.write(relative, f.data)
                written.append(relative)

                kind = media_kind(f.content_type) or "image"
                preview = None
                if kind == "image":
                    preview = await generate_preview(self.storage, relative, f.data)
                    if preview:
                        written.append(preview)

                photos.append(
                    Photo(
                        event_id=event.id,
                        filename=relative,
                        preview_filename=preview,
                        original_name=f.filename,
                        media_type=kind,
                        status=status,
                    )
                )

            self.db.add_all(photos)
            await self.db.flush()
            self.db.add_all(
                PhotoUploadHistory(event_id=event.id, photo_id=p.id, owner_id=event.owner_id)
                for p in photos
            )
            await self.db.execute(
                update(Event)
                .where(Event.id == event.id)
                .values(photo_count=Event.photo_count + len(photos))
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            if written and self.cleanup is not None:
                self.cleanup.enqueue(CleanupJob(files=written, reason="upload aborted"))
            raise

        logger.info(f"Stored {len(photos)} upload(s) for event {event.id} ({status})")
        return photos

    async def store_branding_background(self, event: Event, upload: IncomingFile) -> str:
        """Write a branding background image and return its relative path."""
        folder = event_folder_name(event.id, event.name, event.created_at)
        ext = PurePosixPath(upload.filename or "").suffix or ".jpg"
        relative = f"{folder}/branding/background-{now_ms()}{ext}"
        await self.storage.write(relative, upload.data)
        return relative

    async def list_approved(self, event_id: int, sort: str = "date") -> list[Photo]:
        query = select(Photo).where(
            Photo.event_id == event_id, Photo.status == PhotoStatus.APPROVED.value
        )
        if sort == "likes":
            query = query.order_by(Photo.likes.desc(), Photo.uploaded_at.desc())
        else:
            query = query.order_by(Photo.uploaded_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_recent(self, limit: int = 50) -> list[Photo]:
        """Approved media across events, most liked first."""
        result = await self.db.execute(
            select(Photo)
            .where(Photo.status == PhotoStatus.APPROVED.value)
            .order_by(Photo.likes.desc(), Photo.uploaded_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_pending(self, event_id: int) -> list[Photo]:
        result = await self.db.execute(
            select(Photo)
            .where(Photo.event_id == event_id, Photo.status == PhotoStatus.PENDING.value)
            .order_by(Photo.uploaded_at.desc())
        )
        return list(result.scalars().all())

    async def pending_counts(self, user: User) -> tuple[int, dict[int, int]]:
        """Pending totals per event visible to ``user``."""
        query = (
            select(Photo.event_id, func.count())
            .join(Event, Event.id == Photo.event_id)
            .where(Photo.status == PhotoStatus.PENDING.value)
            .group_by(Photo.event_id)
        )
        if not user.is_root:
            query = query.where(Event.owner_id == user.id)

        result = await self.db.execute(query)
        by_event = {event_id: count for event_id, count in result.all()}
        return sum(by_event.values()), by_event

    async def build_archive(self, event_id: int) -> tuple[str, bytes] | None:
        """ZIP of the approved originals of an event, None when there are none."""
        result = await self.db.execute(
            select(Photo.filename)
            .where(Photo.event_id == event_id, Photo.status == PhotoStatus.APPROVED.value)
            .order_by(Photo.uploaded_at.asc(), Photo.id.asc())
        )
        filenames = [row[0] for row in result.all()]
        if not filenames:
            return None

        event = await self.db.get(Event, event_id)
        event_name = event.name if event and event.name else f"event-{event_id}"
        archive_name = f"{re.sub(r'[^a-zA-Z0-9_-]+', '_', event_name)}-photos.zip"

        paths = [self.storage.resolve(name) for name in filenames]
        data = await asyncio.to_thread(_zip_files, paths)
        return archive_name, data

    async def _free_name(self, subdir: str, safe_name: str) -> str:
        stamp = now_ms()
        while True:
            relative = f"{subdir}/{stamp}-{safe_name}"
            if not await self.storage.exists(relative):
                return relative
            stamp += 1


def _zip_files(paths: list[Path]) -> bytes:
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for idx, path in enumerate(paths, start=1):
            if path.exists():
                archive.write(path, arcname=f"photo-{idx}{path.suffix}")
    return buffer.getvalue()
