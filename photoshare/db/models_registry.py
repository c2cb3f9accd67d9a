"""
Model registry.

Import all models here to ensure they are registered with SQLAlchemy metadata
before ``Base.metadata.create_all`` runs.
"""

from photoshare.db.base import Base
from photoshare.models.audit import (
    EventAudit,
    OrphanedFile,
    PhotoDeletion,
    PhotoUploadHistory,
)
from photoshare.models.event import Event
from photoshare.models.photo import Photo
from photoshare.models.user import User

__all__ = [
    "Base",
    "Event",
    "EventAudit",
    "OrphanedFile",
    "Photo",
    "PhotoDeletion",
    "PhotoUploadHistory",
    "User",
]
