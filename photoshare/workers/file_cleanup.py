"""Background removal of files whose database rows are already gone."""

import asyncio
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from photoshare.db.session import async_session_maker
from photoshare.models.audit import OrphanedFile
from photoshare.services.storage import FileStorage, StorageError, get_storage


@dataclass
class CleanupJob:
    """Files and folders to remove, relative to the uploads root."""

    files: list[str] = field(default_factory=list)
    folders: list[str] = field(default_factory=list)
    reason: str = ""


class FileCleanupWorker:
    """Queue-driven worker deleting files after the owning rows were committed.

    Failures never reach the request that scheduled the job. Paths that still
    cannot be removed after the storage retry policy are recorded in the
    ``orphaned_files`` table for operators to reconcile.
    """

    def __init__(
        self,
        storage: FileStorage | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.storage = storage or get_storage()
        self.session_factory = session_factory or async_session_maker
        self._queue: asyncio.Queue[CleanupJob] = asyncio.Queue()
        self._running = False

    def enqueue(self, job: CleanupJob) -> None:
        """Schedule a job; no-op for empty jobs."""
        if not job.files and not job.folders:
            return
        self._queue.put_nowait(job)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def run(self) -> None:
        """Run the worker (blocking)."""
        self._running = True
        logger.info("File cleanup worker started")
        try:
            while self._running:
                try:
                    job = await asyncio.wait_for(self._queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                try:
                    await self.process(job)
                except Exception as e:
                    logger.error(f"Error processing cleanup job ({job.reason}): {e}")
                finally:
                    self._queue.task_done()
        except asyncio.CancelledError:
            pass
        finally:
            self._running = False
            logger.info("File cleanup worker stopped")

    def stop(self) -> None:
        self._running = False

    async def drain(self) -> None:
        """Process every queued job in the current task."""
        while not self._queue.empty():
            job = self._queue.get_nowait()
            try:
                await self.process(job)
            finally:
                self._queue.task_done()

    async def process(self, job: CleanupJob) -> None:
        for path in job.files:
            try:
                await self.storage.delete(path)
            except StorageError as e:
                await self._dead_letter(e)

        for folder in job.folders:
            try:
                await self.storage.delete_tree(folder)
                logger.info(f"Deleted folder: {folder}")
            except StorageError as e:
                await self._dead_letter(e)

    async def _dead_letter(self, error: StorageError) -> None:
        logger.error(
            f"Giving up on {error.operation} of {error.path}, file orphaned: {error.cause}"
        )
        try:
            async with self.session_factory() as db:
                db.add(
                    OrphanedFile(
                        path=error.path,
                        operation=error.operation,
                        error=str(error.cause) if error.cause else None,
                    )
                )
                await db.commit()
        except Exception as e:
            logger.error(f"Failed to record orphaned file {error.path}: {e}")


_cleanup_worker: FileCleanupWorker | None = None


def get_file_cleanup() -> FileCleanupWorker:
    """Get the process-wide cleanup worker."""
    global _cleanup_worker
    if _cleanup_worker is None:
        _cleanup_worker = FileCleanupWorker()
    return _cleanup_worker
