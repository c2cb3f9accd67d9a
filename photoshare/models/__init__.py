"""Database models."""

from photoshare.models.audit import (
    EventAudit,
    OrphanedFile,
    PhotoDeletion,
    PhotoUploadHistory,
)
from photoshare.models.event import Event, EventStatus
from photoshare.models.photo import Photo, PhotoStatus
from photoshare.models.user import User

__all__ = [
    "Event",
    "EventAudit",
    "EventStatus",
    "OrphanedFile",
    "Photo",
    "PhotoDeletion",
    "PhotoStatus",
    "PhotoUploadHistory",
    "User",
]
