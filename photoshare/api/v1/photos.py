"""Photo API endpoints: upload, listing, moderation and download."""

from fastapi import APIRouter, File, HTTPException, Query, Request, Response, UploadFile, status

from photoshare.core.deps import (
    Cleanup,
    CurrentUserRequired,
    DBSession,
    Storage,
    get_event_or_404,
    get_managed_event,
    parse_id,
)
from photoshare.models.event import Event
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
from photoshare.services.media import max_size_for, media_kind
from photoshare.services.moderation_service import ModerationService
from photoshare.services.photo_service import (
    IncomingFile,
    PhotoService,
    photo_to_dto,
    upload_blocked_reason,
    upload_problem,
    validate_uploads,
)

router = APIRouter()

READ_CHUNK_SIZE = 1024 * 1024


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_photos(
    request: Request,
    db: DBSession,
    storage: Storage,
    cleanup: Cleanup,
    event: str | None = Query(None),
    photos: list[UploadFile] = File(...),
) -> UploadResponse:
    """
    Guest upload of photos and videos.

    - **event**: Event ID (query)
    - **photos**: One or more files (multipart)

    Uploads are accepted only while the event is live.
    """
    if not event:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="event query parameter is required",
        )
    target = await get_event_or_404(db, parse_id(event, "event id"))

    reason = upload_blocked_reason(target)
    if reason:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=reason)

    return await _store(request, target, photos, db, storage, cleanup)


@router.post(
    "/admin/{event_id}/preupload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def preupload_photos(
    event_id: str,
    request: Request,
    db: DBSession,
    storage: Storage,
    cleanup: Cleanup,
    current_user: CurrentUserRequired,
    photos: list[UploadFile] = File(...),
) -> UploadResponse:
    """Organizer upload that ignores the event status."""
    target = await get_managed_event(db, parse_id(event_id, "event id"), current_user)
    return await _store(request, target, photos, db, storage, cleanup)


@router.get("/event/{event_id}", response_model=list[PhotoDTO])
async def list_event_photos(
    event_id: str,
    request: Request,
    db: DBSession,
    storage: Storage,
    sort: str = Query("date"),
) -> list[PhotoDTO]:
    """Approved media of an event, newest first or most liked first (`sort=likes`)."""
    eid = parse_id(event_id, "event id")
    order = "likes" if sort == "likes" else "date"
    photos = await PhotoService(db, storage).list_approved(eid, order)
    base_url = str(request.base_url)
    return [photo_to_dto(p, base_url) for p in photos]


@router.get("/recent", response_model=list[PhotoDTO])
async def list_recent_photos(
    request: Request,
    db: DBSession,
    storage: Storage,
    limit: int = Query(50, ge=1, le=500),
) -> list[PhotoDTO]:
    """Approved media across all events for the live wall."""
    photos = await PhotoService(db, storage).list_recent(limit)
    base_url = str(request.base_url)
    return [photo_to_dto(p, base_url) for p in photos]


@router.get("/event/{event_id}/pending", response_model=list[PhotoDTO])
async def list_pending_photos(
    event_id: str,
    request: Request,
    db: DBSession,
    storage: Storage,
    current_user: CurrentUserRequired,
) -> list[PhotoDTO]:
    """Media awaiting moderation."""
    target = await get_managed_event(db, parse_id(event_id, "event id"), current_user)
    photos = await PhotoService(db, storage).list_pending(target.id)
    base_url = str(request.base_url)
    return [photo_to_dto(p, base_url) for p in photos]


@router.get("/pending/count", response_model=PendingCountResponse)
async def pending_count(
    db: DBSession,
    storage: Storage,
    current_user: CurrentUserRequired,
) -> PendingCountResponse:
    """Pending media totals for the caller's events."""
    total, by_event = await PhotoService(db, storage).pending_counts(current_user)
    return PendingCountResponse(total=total, by_event=by_event)


@router.get("/event/{event_id}/download")
async def download_event_photos(
    event_id: str,
    db: DBSession,
    storage: Storage,
) -> Response:
    """ZIP archive of an event's approved originals."""
    eid = parse_id(event_id, "event id")
    archive = await PhotoService(db, storage).build_archive(eid)
    if archive is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No photos found for this event",
        )

    filename, data = archive
    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/moderate/approve", response_model=ApproveResponse)
async def approve_photos(
    data: ModerationRequest,
    db: DBSession,
    storage: Storage,
    cleanup: Cleanup,
    current_user: CurrentUserRequired,
) -> ApproveResponse:
    """
    Approve pending media.

    - **ids**: Photo IDs. Unknown IDs are reported in `notFound`; items whose
      file could not be moved are reported in `failed`.
    """
    _require_ids(data)
    result = await ModerationService(db, storage, cleanup).approve(data.ids, current_user)
    _raise_if_nothing(bool(result.updated_ids or result.failed), result.forbidden)

    return ApproveResponse(
        updated=result.updated,
        updated_ids=result.updated_ids,
        not_found=result.not_found + result.forbidden,
        failed=[ModerationFailure(id=i, reason=r) for i, r in result.failed],
    )


@router.post("/moderate/reject", response_model=DeleteResponse)
async def reject_photos(
    data: ModerationRequest,
    db: DBSession,
    storage: Storage,
    cleanup: Cleanup,
    current_user: CurrentUserRequired,
) -> DeleteResponse:
    """Reject (delete) media and adjust event counters."""
    _require_ids(data)
    result = await ModerationService(db, storage, cleanup).reject(data.ids, current_user)
    _raise_if_nothing(bool(result.deleted_ids), result.forbidden)

    return DeleteResponse(deleted=result.deleted, not_found=result.not_found + result.forbidden)


@router.post("/{photo_id}/like", response_model=LikeResponse)
async def like_photo(
    photo_id: str,
    db: DBSession,
    storage: Storage,
) -> LikeResponse:
    """Increment likes of a photo."""
    likes = await ModerationService(db, storage).like(parse_id(photo_id, "photo id"))
    if likes is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Photo not found",
        )
    return LikeResponse(likes=likes)


@router.delete("/{photo_id}")
async def delete_photo(
    photo_id: str,
    db: DBSession,
    storage: Storage,
    cleanup: Cleanup,
    current_user: CurrentUserRequired,
) -> dict:
    """Delete a single photo."""
    pid = parse_id(photo_id, "photo id")
    result = await ModerationService(db, storage, cleanup).delete_photo(pid, current_user)
    if result.forbidden:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if not result.deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Photo not found",
        )
    return {"deleted": True}


async def _store(
    request: Request,
    event: Event,
    uploads: list[UploadFile],
    db: DBSession,
    storage: Storage,
    cleanup: Cleanup,
) -> UploadResponse:
    for u in uploads:
        _raise_for_upload(u.filename or "upload", u.content_type, u.size)

    files = [
        IncomingFile(
            filename=u.filename or "upload",
            content_type=u.content_type or "",
            data=await _read_limited(u),
        )
        for u in uploads
    ]
    problem = validate_uploads(files)
    if problem:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)

    stored = await PhotoService(db, storage, cleanup).store_uploads(event, files)
    base_url = str(request.base_url)
    return UploadResponse(uploaded=[photo_to_dto(p, base_url) for p in stored])


async def _read_limited(upload: UploadFile) -> bytes:
    """Read an upload in chunks, refusing it once it passes its type's limit."""
    limit = max_size_for(media_kind(upload.content_type) or "image")
    chunks: list[bytes] = []
    total = 0
    while chunk := await upload.read(READ_CHUNK_SIZE):
        total += len(chunk)
        if total > limit:
            _raise_for_upload(upload.filename or "upload", upload.content_type, total)
        chunks.append(chunk)
    return b"".join(chunks)


def _raise_for_upload(filename: str, content_type: str | None, size: int | None) -> None:
    problem = upload_problem(filename, content_type, size)
    if problem:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)


def _require_ids(data: ModerationRequest) -> None:
    if not data.ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="ids are required",
        )


def _raise_if_nothing(processed: bool, forbidden: list[int]) -> None:
    if processed:
        return
    if forbidden:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Photos not found",
    )
