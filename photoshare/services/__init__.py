"""Service layer for business logic."""

from photoshare.services.analytics_service import AnalyticsService, AuditService
from photoshare.services.auth_service import AuthService
from photoshare.services.event_service import EventService
from photoshare.services.moderation_service import ModerationService
from photoshare.services.photo_service import PhotoService
from photoshare.services.user_service import UserService

__all__ = [
    "AnalyticsService",
    "AuditService",
    "AuthService",
    "EventService",
    "ModerationService",
    "PhotoService",
    "UserService",
]
