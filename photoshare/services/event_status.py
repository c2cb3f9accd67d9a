"""Event status state machine.

Pure functions that decide whether a status change is allowed and which
schedule timestamps result from it. Nothing here touches the database; the
event service and the scheduler worker persist the outcome with a
``status != 'ended'`` guard.

All timestamps are Unix milliseconds.
"""

from dataclasses import dataclass
from enum import Enum

from photoshare.models.event import EventStatus

ALLOWED_TRANSITIONS: dict[EventStatus, frozenset[EventStatus]] = {
    EventStatus.SCHEDULED: frozenset({EventStatus.LIVE, EventStatus.ENDED}),
    EventStatus.PAUSED: frozenset({EventStatus.LIVE, EventStatus.ENDED}),
    EventStatus.LIVE: frozenset({EventStatus.PAUSED, EventStatus.ENDED}),
    EventStatus.ENDED: frozenset(),
}

REQUESTABLE_STATUSES = frozenset({EventStatus.LIVE, EventStatus.PAUSED, EventStatus.ENDED})


class TransitionError(str, Enum):
    """Why a requested transition was rejected."""

    INVALID_STATUS = "invalid_status"
    INVALID_TRANSITION = "invalid_transition"
    EVENT_ENDED = "event_ended"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of :func:`apply_transition`."""

    status: EventStatus
    scheduled_start_at: int | None
    auto_end_at: int | None
    changed: bool = False
    clear_presence: bool = False
    error: TransitionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ScheduledChange:
    """A write the scheduler sweep should perform for one event."""

    status: EventStatus
    scheduled_start_at: int | None
    auto_end_at: int | None
    reason: str

    @property
    def ends_event(self) -> bool:
        return self.status is EventStatus.ENDED


def normalize_status(value: str | None) -> EventStatus:
    """Map a stored status to the enum; unknown values read as scheduled."""
    try:
        return EventStatus(str(value or "").strip().lower())
    except ValueError:
        return EventStatus.SCHEDULED


def parse_requested_status(value: str | None) -> EventStatus | None:
    """Strictly parse a status requested by a client."""
    try:
        status = EventStatus(str(value or "").strip().lower())
    except ValueError:
        return None
    return status if status in REQUESTABLE_STATUSES else None


def can_transition(current: EventStatus, requested: EventStatus) -> bool:
    """Whether ``current -> requested`` is an allowed, non-trivial transition."""
    return requested in ALLOWED_TRANSITIONS[current]


def ensure_auto_end(
    current_auto_end: int | None,
    base_ms: int,
    now: int,
    duration_ms: int,
) -> int:
    """Keep a still-valid future end, otherwise compute ``base + duration``."""
    if current_auto_end is not None and current_auto_end > now:
        return current_auto_end
    return base_ms + duration_ms


def live_auto_end(
    start: int,
    current_auto_end: int | None,
    now: int,
    duration_ms: int,
) -> int:
    """Later of a still-future end and ``start + duration``."""
    fresh_end = start + duration_ms
    if current_auto_end is not None and current_auto_end > now:
        return max(current_auto_end, fresh_end)
    return fresh_end


def apply_transition(
    current: EventStatus,
    requested: str | EventStatus | None,
    scheduled_start_at: int | None,
    auto_end_at: int | None,
    now: int,
    duration_ms: int,
) -> TransitionResult:
    """Validate ``current -> requested`` and compute the resulting timestamps.

    Requesting the current status is an idempotent no-op (``changed`` is
    False). Going live keeps an existing start (or starts now) and extends the
    end to the later of a still-valid future end and ``start + duration``.
    Ending pins the end to ``min(now, existing end)`` and pulls a future start
    back to that end, so the end is never before the start.
    """
    if isinstance(requested, EventStatus):
        target = requested if requested in REQUESTABLE_STATUSES else None
    else:
        target = parse_requested_status(requested)

    unchanged = TransitionResult(
        status=current,
        scheduled_start_at=scheduled_start_at,
        auto_end_at=auto_end_at,
    )

    if target is None:
        return _rejected(unchanged, TransitionError.INVALID_STATUS)

    if target is current:
        return unchanged

    if current is EventStatus.ENDED:
        return _rejected(unchanged, TransitionError.EVENT_ENDED)

    if not can_transition(current, target):
        return _rejected(unchanged, TransitionError.INVALID_TRANSITION)

    if target is EventStatus.LIVE:
        start = scheduled_start_at if scheduled_start_at is not None else now
        return TransitionResult(
            status=EventStatus.LIVE,
            scheduled_start_at=start,
            auto_end_at=live_auto_end(start, auto_end_at, now, duration_ms),
            changed=True,
        )

    if target is EventStatus.ENDED:
        end = now if auto_end_at is None else min(now, auto_end_at)
        start = scheduled_start_at
        if start is not None and start > end:
            start = end
        return TransitionResult(
            status=EventStatus.ENDED,
            scheduled_start_at=start,
            auto_end_at=end,
            changed=True,
            clear_presence=True,
        )

    return TransitionResult(
        status=EventStatus.PAUSED,
        scheduled_start_at=scheduled_start_at,
        auto_end_at=auto_end_at,
        changed=True,
    )


def plan_scheduled_change(
    status: EventStatus,
    scheduled_start_at: int | None,
    auto_end_at: int | None,
    now: int,
    duration_ms: int,
) -> ScheduledChange | None:
    """Decide what the periodic sweep should do with one event.

    Rules are evaluated in order; the first match wins.
    """
    if status is EventStatus.ENDED:
        return None

    start = scheduled_start_at
    end = auto_end_at

    if end is not None and now >= end:
        if start is not None and start > end:
            start = end
        return ScheduledChange(EventStatus.ENDED, start, end, "auto_end_reached")

    if status is EventStatus.LIVE and (end is None or end <= now):
        # A live event whose start lies ahead renews from its start
        base = max(now, start) if start is not None else now
        return ScheduledChange(EventStatus.LIVE, start, base + duration_ms, "live_extended")

    if (
        status is EventStatus.SCHEDULED
        and start is not None
        and start + duration_ms <= now
    ):
        return ScheduledChange(
            EventStatus.ENDED, start, start + duration_ms, "expired_before_start"
        )

    if (
        start is not None
        and start <= now
        and status in (EventStatus.SCHEDULED, EventStatus.PAUSED)
    ):
        new_end = ensure_auto_end(end, start, now, duration_ms)
        return ScheduledChange(EventStatus.LIVE, start, new_end, "auto_started")

    return None


def _rejected(base: TransitionResult, error: TransitionError) -> TransitionResult:
    return TransitionResult(
        status=base.status,
        scheduled_start_at=base.scheduled_start_at,
        auto_end_at=base.auto_end_at,
        error=error,
    )
