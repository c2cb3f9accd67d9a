"""Event API endpoints."""

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from photoshare.core.deps import (
    Cleanup,
    CurrentUserRequired,
    DBSession,
    Presence,
    Storage,
    get_event_or_404,
    get_managed_event,
    parse_id,
)
from photoshare.schemas.event import (
    BrandingBackgroundResponse,
    EventCreate,
    EventDTO,
    EventStatusResponse,
    EventStatusUpdate,
    EventUpdate,
    PresenceRequest,
    PresenceResponse,
)
from photoshare.services.event_service import EventService, event_to_dto
from photoshare.services.event_status import TransitionError, parse_requested_status
from photoshare.services.media import IMAGE_TYPES
from photoshare.services.photo_service import IncomingFile, PhotoService
from photoshare.services.sharing import uploads_url

router = APIRouter()

TRANSITION_MESSAGES = {
    TransitionError.INVALID_STATUS: "Invalid status",
    TransitionError.INVALID_TRANSITION: "Status transition not allowed",
    TransitionError.EVENT_ENDED: "Event has ended and cannot be restarted",
}
MAX_BACKGROUND_SIZE = 10 * 1024 * 1024


@router.post("", response_model=EventDTO, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    request: Request,
    db: DBSession,
    presence: Presence,
    current_user: CurrentUserRequired,
) -> EventDTO:
    """
    Create an event.

    - **name**: Event name
    - **date**: Event date (YYYY-MM-DD)
    - **startTime**: Optional start time (HH:MM), combined with date as UTC
    """
    event = await EventService(db, presence).create_event(data, current_user)
    return event_to_dto(event, presence, str(request.base_url), current_user.username)


@router.get("", response_model=list[EventDTO])
async def list_events(
    request: Request,
    db: DBSession,
    presence: Presence,
    current_user: CurrentUserRequired,
) -> list[EventDTO]:
    """List events owned by the caller; root sees every event."""
    rows = await EventService(db, presence).list_events(current_user)
    base_url = str(request.base_url)
    return [event_to_dto(event, presence, base_url, owner) for event, owner in rows]


@router.get("/active-users")
async def get_active_users(
    presence: Presence,
    current_user: CurrentUserRequired,
) -> dict[int, int]:
    """Viewer counts of every event with at least one active viewer."""
    return presence.snapshot()


@router.get("/{event_id}", response_model=EventDTO)
async def get_event(
    event_id: str,
    request: Request,
    db: DBSession,
    presence: Presence,
) -> EventDTO:
    """Get a single event with its live viewer count."""
    event = await get_event_or_404(db, parse_id(event_id, "event id"))
    return event_to_dto(event, presence, str(request.base_url))


@router.post("/{event_id}/status", response_model=EventStatusResponse)
async def change_event_status(
    event_id: str,
    data: EventStatusUpdate,
    db: DBSession,
    presence: Presence,
    current_user: CurrentUserRequired,
):
    """
    Change the event status.

    - **status**: `live`, `paused` or `ended`. Ended events cannot be
      restarted; requesting the current status changes nothing.
    """
    eid = parse_id(event_id, "event id")
    if parse_requested_status(data.status) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid status",
        )

    event = await get_managed_event(db, eid, current_user)
    result = await EventService(db, presence).change_status(event, data.status)

    if not result.ok:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": TRANSITION_MESSAGES[result.error],
                "reason": result.error.value,
            },
        )

    return EventStatusResponse(
        id=eid,
        status=result.status.value,
        scheduled_start_at=result.scheduled_start_at,
        auto_end_at=result.auto_end_at,
        changed=result.changed,
    )


@router.post("/{event_id}/active", response_model=PresenceResponse)
async def heartbeat(
    event_id: str,
    presence: Presence,
    data: PresenceRequest | None = None,
) -> PresenceResponse:
    """Register or refresh a gallery viewer."""
    eid, client_id = _presence_params(event_id, data)
    return PresenceResponse(count=presence.register(eid, client_id))


@router.post("/{event_id}/active/leave", response_model=PresenceResponse)
async def leave(
    event_id: str,
    presence: Presence,
    data: PresenceRequest | None = None,
) -> PresenceResponse:
    """Remove a gallery viewer."""
    eid, client_id = _presence_params(event_id, data)
    return PresenceResponse(count=presence.unregister(eid, client_id))


@router.put("/{event_id}", response_model=EventDTO)
async def update_event(
    event_id: str,
    data: EventUpdate,
    request: Request,
    db: DBSession,
    presence: Presence,
    cleanup: Cleanup,
    current_user: CurrentUserRequired,
) -> EventDTO:
    """Update event settings; the schedule is recomputed from date and start time."""
    event = await get_managed_event(db, parse_id(event_id, "event id"), current_user)
    event = await EventService(db, presence, cleanup).update_settings(event, data)
    return event_to_dto(event, presence, str(request.base_url))


@router.post("/{event_id}/branding/background", response_model=BrandingBackgroundResponse)
async def upload_branding_background(
    event_id: str,
    request: Request,
    db: DBSession,
    storage: Storage,
    presence: Presence,
    cleanup: Cleanup,
    current_user: CurrentUserRequired,
    background: UploadFile = File(...),
) -> BrandingBackgroundResponse:
    """Store a gallery background image, replacing the previous one."""
    event = await get_managed_event(db, parse_id(event_id, "event id"), current_user)

    if (background.content_type or "").lower() not in IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid image format",
        )
    if background.size is not None and background.size > MAX_BACKGROUND_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File too large",
        )
    data = await background.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File not found",
        )
    if len(data) > MAX_BACKGROUND_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File too large",
        )

    upload = IncomingFile(
        filename=background.filename or "background.jpg",
        content_type=background.content_type or "",
        data=data,
    )
    relative = await PhotoService(db, storage).store_branding_background(event, upload)
    await EventService(db, presence, cleanup).set_branding_background(event, relative)

    return BrandingBackgroundResponse(
        path=relative,
        url=uploads_url(str(request.base_url), relative),
    )


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    db: DBSession,
    presence: Presence,
    cleanup: Cleanup,
    current_user: CurrentUserRequired,
) -> dict:
    """Delete an event with all its media and record an audit entry."""
    event = await get_managed_event(db, parse_id(event_id, "event id"), current_user)
    audit = await EventService(db, presence, cleanup).delete_event(event)
    return {
        "deleted": True,
        "removedPhotos": audit.total_photos_at_delete,
    }


def _presence_params(event_id: str, data: PresenceRequest | None) -> tuple[int, str]:
    client_id = (data.client_id if data else None) or ""
    try:
        eid = int(event_id)
    except ValueError:
        eid = 0
    if eid <= 0 or not client_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid parameters",
        )
    return eid, client_id.strip()
