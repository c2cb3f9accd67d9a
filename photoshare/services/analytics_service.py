"""Analytics and audit read-side queries."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.models.audit import EventAudit, PhotoDeletion, PhotoUploadHistory
from photoshare.models.event import Event
from photoshare.models.photo import Photo
from photoshare.schemas.analytics import AnalyticsSummary, UploadsByDay
from photoshare.services.base_service import BaseService
from photoshare.services.storage import FileStorage

MAX_DAYS = 30


class AnalyticsService:
    """Aggregates over events, photos and the append-only logs."""

    def __init__(self, db: AsyncSession, storage: FileStorage):
        self.db = db
        self.storage = storage

    async def summary(self) -> AnalyticsSummary:
        total_events = (
            await self.db.execute(select(func.count()).select_from(Event))
        ).scalar() or 0
        filenames = (await self.db.execute(select(Photo.filename))).scalars().all()
        deleted = (
            await self.db.execute(select(func.count()).select_from(PhotoDeletion))
        ).scalar() or 0

        total_size = 0
        for filename in filenames:
            if filename:
                total_size += await self.storage.size(filename)

        return AnalyticsSummary(
            total_events=total_events,
            total_photos=len(filenames),
            total_size_bytes=total_size,
            deleted_photos=deleted,
        )

    async def uploads_by_day(self, limit: int = 7) -> list[UploadsByDay]:
        """Upload totals for the most recent days with uploads, oldest first."""
        days = limit if limit > 0 else 7
        days = min(days, MAX_DAYS)

        day = func.date(PhotoUploadHistory.uploaded_at / 1000, "unixepoch")
        result = await self.db.execute(
            select(day.label("day"), func.count().label("total"))
            .group_by("day")
            .order_by(day.desc())
            .limit(days)
        )
        rows = [UploadsByDay(day=row.day, total=row.total) for row in result.all()]
        rows.reverse()
        return rows


class AuditService(BaseService[EventAudit]):
    """Event deletion audit records."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, EventAudit)

    async def list_records(self, owner_id: int | None = None) -> list[EventAudit]:
        query = select(EventAudit).order_by(EventAudit.deleted_at.desc(), EventAudit.id.desc())
        if owner_id is not None:
            query = query.where(EventAudit.owner_id == owner_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())
