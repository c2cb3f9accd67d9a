"""Pydantic schemas for API request/response validation."""

from photoshare.schemas.analytics import AnalyticsSummary, UploadsByDay
from photoshare.schemas.auth import Token, UserCreate, UserDTO, UserLogin, UserUpdate
from photoshare.schemas.event import (
    BrandingBackgroundResponse,
    EventAuditDTO,
    EventCreate,
    EventDTO,
    EventStatusResponse,
    EventStatusUpdate,
    EventUpdate,
    PresenceRequest,
    PresenceResponse,
)
from photoshare.schemas.photo import (
    ApproveResponse,
    DeleteResponse,
    LikeResponse,
    ModerationFailure,
    ModerationRequest,
    PendingCountResponse,
    PhotoDTO,
    UploadResponse,
)

__all__ = [
    # Analytics
    "AnalyticsSummary",
    "UploadsByDay",
    # Auth
    "Token",
    "UserCreate",
    "UserDTO",
    "UserLogin",
    "UserUpdate",
    # Event
    "BrandingBackgroundResponse",
    "EventAuditDTO",
    "EventCreate",
    "EventDTO",
    "EventStatusResponse",
    "EventStatusUpdate",
    "EventUpdate",
    "PresenceRequest",
    "PresenceResponse",
    # Photo
    "ApproveResponse",
    "DeleteResponse",
    "LikeResponse",
    "ModerationFailure",
    "ModerationRequest",
    "PendingCountResponse",
    "PhotoDTO",
    "UploadResponse",
]
