"""Moderation and counter maintenance for uploaded media.

Approval relocates files out of the ``pending`` folder before the rows are
updated. Rejection and deletion remove rows, append deletion records and
adjust the owning events' counters in one transaction; files are removed by
the cleanup worker once that transaction has committed.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy import case, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.models.audit import PhotoDeletion
from photoshare.models.event import Event
from photoshare.models.photo import Photo, PhotoStatus
from photoshare.models.user import User
from photoshare.services.base_service import BaseService
from photoshare.services.storage import FileStorage, StorageError, strip_pending_segment
from photoshare.workers.file_cleanup import CleanupJob, FileCleanupWorker


@dataclass
class ModerationResult:
    """Per-item outcome of a batch approval."""

    updated_ids: list[int] = field(default_factory=list)
    not_found: list[int] = field(default_factory=list)
    forbidden: list[int] = field(default_factory=list)
    failed: list[tuple[int, str]] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return len(self.updated_ids)


@dataclass
class DeletionResult:
    """Outcome of a batch rejection or single deletion."""

    deleted_ids: list[int] = field(default_factory=list)
    not_found: list[int] = field(default_factory=list)
    forbidden: list[int] = field(default_factory=list)

    @property
    def deleted(self) -> int:
        return len(self.deleted_ids)


def decrement_clamped(column, amount: int):
    """``column - amount`` never going below zero, evaluated in SQL."""
    return case((column >= amount, column - amount), else_=0)


class ModerationService(BaseService[Photo]):
    """Approve, reject, delete and like photos."""

    def __init__(
        self,
        db: AsyncSession,
        storage: FileStorage,
        cleanup: FileCleanupWorker | None = None,
    ):
        super().__init__(db, Photo)
        self.storage = storage
        self.cleanup = cleanup

    async def approve(self, ids: Iterable[int], user: User | None = None) -> ModerationResult:
        """Approve photos, moving pending files to their public location.

        An item whose original file cannot be moved (including a stored path
        outside the uploads root) stays pending and is reported in
        ``failed``. A preview that cannot be moved keeps its old path.
        """
        result = ModerationResult()
        photos = await self._load(ids, user, result.not_found, result.forbidden)

        moved: list[tuple[str, str]] = []
        for photo in photos:
            new_filename = photo.filename
            target = strip_pending_segment(photo.filename) if photo.filename else None
            if target is not None:
                try:
                    await self.storage.move(photo.filename, target)
                except (StorageError, ValueError) as e:
                    logger.error(f"Approve failed for photo {photo.id}: {e}")
                    result.failed.append((photo.id, "move_failed"))
                    continue
                moved.append((photo.filename, target))
                new_filename = target

            new_preview = photo.preview_filename
            preview_target = (
                strip_pending_segment(photo.preview_filename) if photo.preview_filename else None
            )
            if preview_target is not None:
                try:
                    await self.storage.move(photo.preview_filename, preview_target)
                    moved.append((photo.preview_filename, preview_target))
                    new_preview = preview_target
                except (StorageError, ValueError) as e:
                    logger.warning(f"Keeping pending preview for photo {photo.id}: {e}")

            photo.filename = new_filename
            photo.preview_filename = new_preview
            photo.status = PhotoStatus.APPROVED.value
            result.updated_ids.append(photo.id)

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            await self._restore(moved)
            raise

        if result.updated_ids:
            logger.info(f"Approved {result.updated} photo(s)")
        return result

    async def reject(self, ids: Iterable[int], user: User | None = None) -> DeletionResult:
        """Delete photos, logging each deletion and adjusting event counters."""
        result = DeletionResult()
        photos = await self._load(ids, user, result.not_found, result.forbidden)
        await self._remove(photos, result)
        return result

    async def delete_photo(self, photo_id: int, user: User | None = None) -> DeletionResult:
        """Delete a single photo with the same bookkeeping as :meth:`reject`."""
        return await self.reject([photo_id], user)

    async def like(self, photo_id: int) -> int | None:
        """Increment likes on a photo and its event. None when unknown."""
        updated = await self.db.execute(
            update(Photo).where(Photo.id == photo_id).values(likes=Photo.likes + 1)
        )
        if updated.rowcount == 0:
            await self.db.rollback()
            return None

        row = (
            await self.db.execute(
                select(Photo.likes, Photo.event_id).where(Photo.id == photo_id)
            )
        ).one()
        if row.event_id is not None:
            await self.db.execute(
                update(Event)
                .where(Event.id == row.event_id)
                .values(like_count=Event.like_count + 1)
            )
        await self.db.commit()
        return row.likes

    async def _load(
        self,
        ids: Iterable[int],
        user: User | None,
        not_found: list[int],
        forbidden: list[int],
    ) -> list[Photo]:
        id_list = list(dict.fromkeys(ids))
        photos = await self.get_many(id_list)
        found = {p.id for p in photos}
        not_found.extend(i for i in id_list if i not in found)

        if user is None or user.is_root:
            return photos

        event_ids = {p.event_id for p in photos if p.event_id is not None}
        owners: dict[int, int | None] = {}
        if event_ids:
            rows = await self.db.execute(
                select(Event.id, Event.owner_id).where(Event.id.in_(event_ids))
            )
            owners = {row.id: row.owner_id for row in rows.all()}

        allowed = []
        for photo in photos:
            if user.can_manage(owners.get(photo.event_id)):
                allowed.append(photo)
            else:
                forbidden.append(photo.id)
        return allowed

    async def _remove(self, photos: list[Photo], result: DeletionResult) -> None:
        if not photos:
            return

        counts: dict[int, int] = defaultdict(int)
        likes: dict[int, int] = defaultdict(int)
        files: list[str] = []
        for photo in photos:
            if photo.event_id is not None:
                counts[photo.event_id] += 1
                likes[photo.event_id] += photo.likes or 0
            if photo.filename:
                files.append(photo.filename)
            if photo.preview_filename and photo.preview_filename != photo.filename:
                files.append(photo.preview_filename)

        photo_ids = [p.id for p in photos]
        try:
            await self.db.execute(delete(Photo).where(Photo.id.in_(photo_ids)))
            self.db.add_all(
                PhotoDeletion(event_id=p.event_id, photo_id=p.id) for p in photos
            )
            for event_id, count in counts.items():
                await self.db.execute(
                    update(Event)
                    .where(Event.id == event_id)
                    .values(
                        photo_count=decrement_clamped(Event.photo_count, count),
                        like_count=decrement_clamped(Event.like_count, likes[event_id]),
                        deleted_photo_count=Event.deleted_photo_count + count,
                    )
                )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        result.deleted_ids.extend(photo_ids)
        if self.cleanup is not None:
            self.cleanup.enqueue(
                CleanupJob(files=files, reason=f"{len(photo_ids)} photo(s) deleted")
            )
        logger.info(f"Deleted {len(photo_ids)} photo(s)")

    async def _restore(self, moved: list[tuple[str, str]]) -> None:
        for original, target in reversed(moved):
            try:
                await self.storage.move(target, original)
            except StorageError as e:
                logger.error(f"Could not restore {target} to {original}: {e}")
