"""Event service for event lifecycle management."""

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.core.timing import get_auto_end_duration_ms, now_ms
from photoshare.models.audit import EventAudit
from photoshare.models.event import DEFAULT_BRANDING_COLOR, Event, EventStatus
from photoshare.models.photo import Photo
from photoshare.models.user import User
from photoshare.schemas.event import EventCreate, EventDTO, EventUpdate
from photoshare.services.base_service import BaseService
from photoshare.services.event_status import (
    TransitionError,
    TransitionResult,
    apply_transition,
    live_auto_end,
    normalize_status,
)
from photoshare.services.media import event_folder_name
from photoshare.services.presence import PresenceStore
from photoshare.services.sharing import (
    build_access_link,
    combine_date_and_time,
    generate_qr_code,
    uploads_url,
)
from photoshare.services.storage import top_level_folder
from photoshare.workers.file_cleanup import CleanupJob, FileCleanupWorker


def event_to_dto(
    event: Event,
    presence: PresenceStore,
    base_url: str = "",
    owner_username: str | None = None,
) -> EventDTO:
    """Build the API view of an event with live presence and branding URL."""
    dto = EventDTO.model_validate(event)
    dto.status = normalize_status(event.status).value
    dto.active_users = presence.count(event.id)
    dto.owner_username = owner_username
    dto.branding_background_url = uploads_url(base_url, event.branding_background)
    if not dto.access_link:
        dto.access_link = build_access_link(event.id, event.date)
    return dto


class EventService(BaseService[Event]):
    """Event service for event CRUD and status changes."""

    def __init__(
        self,
        db: AsyncSession,
        presence: PresenceStore,
        cleanup: FileCleanupWorker | None = None,
    ):
        super().__init__(db, Event)
        self.presence = presence
        self.cleanup = cleanup

    async def create_event(self, data: EventCreate, owner: User) -> Event:
        """Create an event with its gallery link and QR image."""
        event = Event(
            name=data.name,
            date=data.date or "",
            description=data.description,
            branding_color=DEFAULT_BRANDING_COLOR,
            status=EventStatus.SCHEDULED.value,
            scheduled_start_at=combine_date_and_time(data.date, data.start_time),
            auto_end_at=None,
            owner_id=owner.id,
        )
        self.db.add(event)
        await self.db.flush()

        event.access_link = build_access_link(event.id, event.date)
        event.qr_code = generate_qr_code(event.access_link)
        await self.db.commit()
        await self.db.refresh(event)

        logger.info(f"Event {event.id} created by {owner.username}")
        return event

    async def list_events(self, user: User) -> list[tuple[Event, str | None]]:
        """Events visible to ``user``, newest first, with owner usernames."""
        query = (
            select(Event, User.username)
            .outerjoin(User, User.id == Event.owner_id)
            .order_by(Event.created_at.desc(), Event.id.desc())
        )
        if not user.is_root:
            query = query.where(Event.owner_id == user.id)

        result = await self.db.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def change_status(
        self,
        event: Event,
        requested: str | None,
        now: int | None = None,
        duration_ms: int | None = None,
    ) -> TransitionResult:
        """Apply a requested status change.

        The write is guarded by ``status != 'ended'`` so a concurrent end by
        the scheduler cannot be overwritten.
        """
        now = now_ms() if now is None else now
        duration_ms = get_auto_end_duration_ms() if duration_ms is None else duration_ms

        result = apply_transition(
            normalize_status(event.status),
            requested,
            event.scheduled_start_at,
            event.auto_end_at,
            now,
            duration_ms,
        )
        if not result.ok or not result.changed:
            return result

        updated = await self.db.execute(
            update(Event)
            .where(Event.id == event.id, Event.status != EventStatus.ENDED.value)
            .values(
                status=result.status.value,
                scheduled_start_at=result.scheduled_start_at,
                auto_end_at=result.auto_end_at,
            )
        )
        if updated.rowcount == 0:
            await self.db.rollback()
            await self.db.refresh(event)
            return TransitionResult(
                status=EventStatus.ENDED,
                scheduled_start_at=event.scheduled_start_at,
                auto_end_at=event.auto_end_at,
                error=TransitionError.EVENT_ENDED,
            )

        await self.db.commit()
        await self.db.refresh(event)

        if result.clear_presence:
            self.presence.clear(event.id)

        logger.info(f"Event {event.id} status changed to {result.status.value}")
        return result

    async def update_settings(
        self,
        event: Event,
        data: EventUpdate,
        now: int | None = None,
        duration_ms: int | None = None,
    ) -> Event:
        """Replace event settings and recompute the schedule.

        A start time recombined from ``date`` + ``start_time`` replaces the
        stored start; a missing start is derived from ``date`` alone. Scheduled
        events lose their end time. Live or paused events whose start moved or
        that have no end get the later of a still-future end and
        ``start + duration``.
        """
        now = now_ms() if now is None else now
        duration_ms = get_auto_end_duration_ms() if duration_ms is None else duration_ms

        scheduled_start_at = event.scheduled_start_at
        if data.date and data.start_time:
            combined = combine_date_and_time(data.date, data.start_time)
            if combined is not None:
                scheduled_start_at = combined
        elif scheduled_start_at is None and data.date:
            combined = combine_date_and_time(data.date, data.start_time or "00:00")
            if combined is not None:
                scheduled_start_at = combined

        current = normalize_status(event.status)
        auto_end_at = event.auto_end_at
        start_moved = scheduled_start_at != event.scheduled_start_at
        if current is EventStatus.SCHEDULED:
            auto_end_at = None
        elif current in (EventStatus.LIVE, EventStatus.PAUSED) and (
            auto_end_at is None or start_moved
        ):
            base = scheduled_start_at if scheduled_start_at is not None else now
            auto_end_at = live_auto_end(base, auto_end_at, now, duration_ms)

        auto_delete_days = data.auto_delete_days if data.auto_delete_days is not None else 14
        if auto_delete_days < 0:
            auto_delete_days = 0

        previous_background = event.branding_background or ""
        new_background = data.branding_background or ""

        event.name = data.name or event.name
        event.date = data.date
        event.description = data.description
        event.require_moderation = bool(data.require_moderation)
        event.upload_access = data.upload_access or "all"
        event.view_access = data.view_access or "link"
        event.auto_delete_days = auto_delete_days
        event.branding_color = data.branding_color
        event.branding_background = new_background or None
        event.notify_before_delete = bool(data.notify_before_delete)
        event.scheduled_start_at = scheduled_start_at
        event.auto_end_at = auto_end_at
        event = await self.update(event)

        if previous_background and previous_background != new_background:
            self._enqueue(CleanupJob(files=[previous_background], reason="branding replaced"))

        return event

    async def set_branding_background(
        self, event: Event, relative_path: str
    ) -> Event:
        """Point the event at a newly stored background, dropping the old file."""
        previous = event.branding_background
        event.branding_background = relative_path
        event = await self.update(event)

        if previous and previous != relative_path:
            self._enqueue(CleanupJob(files=[previous], reason="branding replaced"))
        return event

    async def delete_event(self, event: Event) -> EventAudit:
        """Delete an event with its media and record the audit snapshot.

        Rows are removed and the audit record inserted in one transaction.
        Files are removed by the cleanup worker after the commit.
        """
        result = await self.db.execute(
            select(Photo.filename, Photo.preview_filename).where(Photo.event_id == event.id)
        )
        photo_rows = result.all()

        files: list[str] = []
        for filename, preview in photo_rows:
            if filename:
                files.append(filename)
            if preview and preview != filename:
                files.append(preview)
        if event.branding_background:
            files.append(event.branding_background)

        folder = (
            next((top_level_folder(f) for f, _ in photo_rows if top_level_folder(f)), None)
            or top_level_folder(event.branding_background)
            or event_folder_name(event.id, event.name, event.created_at)
        )

        audit = EventAudit(
            event_id=event.id,
            owner_id=event.owner_id,
            name=event.name or "",
            created_at=event.created_at,
            deleted_at=now_ms(),
            total_photos_at_delete=len(photo_rows),
            deleted_photos_cumulative=event.deleted_photo_count or 0,
        )

        event_id = event.id
        try:
            await self.db.execute(delete(Photo).where(Photo.event_id == event_id))
            await self.db.execute(delete(Event).where(Event.id == event_id))
            self.db.add(audit)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(audit)

        self.presence.clear(event_id)
        self._enqueue(
            CleanupJob(files=files, folders=[folder], reason=f"event {event_id} deleted")
        )

        logger.info(f"Event {event_id} deleted with {len(photo_rows)} photo(s)")
        return audit

    def _enqueue(self, job: CleanupJob) -> None:
        if self.cleanup is not None:
            self.cleanup.enqueue(job)
