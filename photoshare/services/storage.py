"""File storage for uploaded media.

Paths handed to and returned from this module are POSIX-style and relative to
the uploads root. Blocking filesystem calls run in a worker thread; calls that
hit a transient lock (busy file, permission flap, descriptor exhaustion) are
retried with exponential backoff and jitter.
"""

import asyncio
import errno
import random
import shutil
import time
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

from loguru import logger

from photoshare.core.config import get_settings

RETRYABLE_ERRNOS = frozenset(
    {errno.EBUSY, errno.EPERM, errno.EACCES, errno.EMFILE, errno.ENFILE}
)
PENDING_SEGMENT = "pending"


class StorageError(Exception):
    """A file operation failed permanently."""

    def __init__(self, operation: str, path: str, cause: BaseException | None = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        super().__init__(f"{operation} failed for {path}: {cause}")


def split_segments(relative_path: str) -> list[str]:
    return [s for s in relative_path.replace("\\", "/").split("/") if s]


def strip_pending_segment(relative_path: str) -> str | None:
    """Path with the first ``pending`` segment removed, or None if absent."""
    segments = split_segments(relative_path)
    if PENDING_SEGMENT not in segments:
        return None
    segments.remove(PENDING_SEGMENT)
    return "/".join(segments)


def top_level_folder(relative_path: str | None) -> str | None:
    if not relative_path:
        return None
    segments = split_segments(relative_path)
    return segments[0] if segments else None


class FileStorage:
    """Local-disk storage rooted at ``root``."""

    def __init__(
        self,
        root: str | Path,
        max_attempts: int = 20,
        initial_delay: float = 0.15,
        max_delay: float = 2.0,
        timeout: float = 30.0,
    ):
        self.root = Path(root).resolve()
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for a stored file; refuses to escape the root."""
        path = (self.root / "/".join(split_segments(relative_path))).resolve()
        if path != self.root and self.root not in path.parents:
            raise ValueError(f"path escapes storage root: {relative_path}")
        return path

    async def exists(self, relative_path: str) -> bool:
        path = self.resolve(relative_path)
        return await asyncio.to_thread(path.exists)

    async def size(self, relative_path: str) -> int:
        """File size in bytes, 0 when missing."""
        path = self.resolve(relative_path)

        def _size() -> int:
            try:
                return path.stat().st_size
            except FileNotFoundError:
                return 0

        return await asyncio.to_thread(_size)

    async def write(self, relative_path: str, data: bytes) -> None:
        path = self.resolve(relative_path)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)

    async def move(self, src_relative: str, dst_relative: str) -> None:
        """Move a file, creating the destination folder.

        A missing source is treated as already moved.
        """
        src = self.resolve(src_relative)
        dst = self.resolve(dst_relative)

        def _move() -> None:
            if not src.exists():
                if not dst.exists():
                    logger.warning(f"Move source missing, nothing to relocate: {src}")
                return
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(src), str(dst))

        await self._with_retry("move", src_relative, _move)

    async def delete(self, relative_path: str) -> None:
        """Delete a file. A missing file counts as deleted."""
        path = self.resolve(relative_path)
        await self._with_retry("delete", relative_path, lambda: path.unlink(missing_ok=True))

    async def delete_tree(self, relative_path: str) -> None:
        """Recursively delete a folder below the root."""
        path = self.resolve(relative_path)
        if path == self.root:
            raise ValueError("refusing to delete the storage root")

        def _rmtree() -> None:
            if path.exists():
                shutil.rmtree(path)

        await self._with_retry("delete_tree", relative_path, _rmtree)

    async def _with_retry(
        self,
        operation: str,
        relative_path: str,
        fn: Callable[[], Any],
    ) -> None:
        started = time.monotonic()
        attempt = 0
        while True:
            attempt += 1
            try:
                await asyncio.to_thread(fn)
                return
            except OSError as e:
                retryable = e.errno in RETRYABLE_ERRNOS
                elapsed = time.monotonic() - started
                if not retryable or attempt >= self.max_attempts or elapsed >= self.timeout:
                    logger.warning(
                        f"File {operation} failed for {relative_path} "
                        f"after {attempt} attempt(s): {e}"
                    )
                    raise StorageError(operation, relative_path, e) from e

                delay = min(self.initial_delay * (1.4 ** (attempt - 1)), self.max_delay)
                await asyncio.sleep(delay + random.uniform(0, 0.05))


@lru_cache
def get_storage() -> FileStorage:
    """Get cached storage rooted at the configured uploads folder."""
    settings = get_settings()
    return FileStorage(
        settings.uploads_dir,
        max_attempts=settings.file_retry_max_attempts,
        initial_delay=settings.file_retry_initial_delay,
        max_delay=settings.file_retry_max_delay,
        timeout=settings.file_retry_timeout,
    )
