"""Analytics API endpoints."""

from fastapi import APIRouter, Query

from photoshare.core.deps import CurrentUserRequired, DBSession, Storage
from photoshare.schemas.analytics import AnalyticsSummary, UploadsByDay
from photoshare.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/summary", response_model=AnalyticsSummary)
async def get_summary(
    db: DBSession,
    storage: Storage,
    current_user: CurrentUserRequired,
) -> AnalyticsSummary:
    """Totals of events, stored media, bytes on disk and deleted media."""
    return await AnalyticsService(db, storage).summary()


@router.get("/uploads-by-day", response_model=list[UploadsByDay])
async def get_uploads_by_day(
    db: DBSession,
    storage: Storage,
    current_user: CurrentUserRequired,
    limit: int = Query(7),
) -> list[UploadsByDay]:
    """
    Upload totals per UTC day, oldest first.

    - **limit**: Number of days with uploads (default 7, at most 30)
    """
    return await AnalyticsService(db, storage).uploads_by_day(limit)
