"""Periodic sweep moving events through their lifecycle by wall-clock time."""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from photoshare.core.timing import get_auto_end_duration_ms, now_ms
from photoshare.db.session import async_session_maker
from photoshare.models.event import Event, EventStatus
from photoshare.services.event_status import normalize_status, plan_scheduled_change
from photoshare.services.presence import PresenceStore, get_presence_store


@dataclass
class SweepStats:
    """Counters for one sweep."""

    checked: int = 0
    updated: int = 0
    failed: int = 0


class EventSchedulerWorker:
    """Worker applying time-driven status changes to every non-ended event.

    Each event is planned and written on its own; an error on one row is
    logged and rolled back without stopping the sweep. Writes only apply while
    the row still has the status the sweep read (and is not ended), so a
    concurrent manual change always wins. Renewing a live event writes only
    its end time.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        presence: PresenceStore | None = None,
        duration_ms: int | None = None,
    ):
        self.session_factory = session_factory or async_session_maker
        self.presence = presence or get_presence_store()
        self.duration_ms = duration_ms

    async def run(self, now: int | None = None) -> SweepStats:
        """Run one sweep."""
        stats = SweepStats()
        now = now_ms() if now is None else now
        duration = self.duration_ms or get_auto_end_duration_ms()

        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(
                        Event.id, Event.status, Event.scheduled_start_at, Event.auto_end_at
                    ).where(Event.status != EventStatus.ENDED.value)
                )
                rows = result.all()
        except Exception as e:
            logger.error(f"Event scheduler could not load events: {e}")
            return stats

        for row in rows:
            stats.checked += 1
            async with self.session_factory() as db:
                try:
                    if await self._apply(db, row, now, duration):
                        stats.updated += 1
                except Exception as e:
                    stats.failed += 1
                    await db.rollback()
                    logger.error(f"Event scheduler failed for event {row.id}: {e}")

        if stats.updated or stats.failed:
            logger.info(
                f"Event scheduler: checked {stats.checked}, "
                f"updated {stats.updated}, failed {stats.failed}"
            )
        return stats

    async def _apply(self, db: AsyncSession, row, now: int, duration: int) -> bool:
        current = normalize_status(row.status)
        change = plan_scheduled_change(
            current,
            row.scheduled_start_at,
            row.auto_end_at,
            now,
            duration,
        )
        if change is None:
            return False

        if change.status is current:
            values = {"auto_end_at": change.auto_end_at}
        else:
            values = {
                "status": change.status.value,
                "scheduled_start_at": change.scheduled_start_at,
                "auto_end_at": change.auto_end_at,
            }

        result = await db.execute(
            update(Event)
            .where(
                Event.id == row.id,
                Event.status == row.status,
                Event.status != EventStatus.ENDED.value,
            )
            .values(**values)
        )
        await db.commit()
        if result.rowcount == 0:
            return False

        if change.ends_event:
            self.presence.clear(row.id)
        logger.info(f"Event {row.id} -> {change.status.value} ({change.reason})")
        return True
