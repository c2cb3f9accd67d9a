"""Background workers for scheduled tasks and file cleanup."""

from photoshare.workers.event_scheduler import EventSchedulerWorker
from photoshare.workers.file_cleanup import CleanupJob, FileCleanupWorker, get_file_cleanup

__all__ = [
    "CleanupJob",
    "EventSchedulerWorker",
    "FileCleanupWorker",
    "get_file_cleanup",
]
