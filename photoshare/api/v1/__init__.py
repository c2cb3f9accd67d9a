"""API v1 router initialization."""

from fastapi import APIRouter

from photoshare.api.v1.analytics import router as analytics_router
from photoshare.api.v1.audit import router as audit_router
from photoshare.api.v1.auth import router as auth_router
from photoshare.api.v1.events import router as events_router
from photoshare.api.v1.photos import router as photos_router
from photoshare.api.v1.users import router as users_router

router = APIRouter()

router.include_router(auth_router, prefix="/auth", tags=["Auth"])
router.include_router(users_router, prefix="/users", tags=["Users"])
router.include_router(events_router, prefix="/events", tags=["Events"])
router.include_router(photos_router, prefix="/photos", tags=["Photos"])
router.include_router(analytics_router, prefix="/analytics", tags=["Analytics"])
router.include_router(audit_router, prefix="/audit", tags=["Audit"])
