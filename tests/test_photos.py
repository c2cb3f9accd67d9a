"""Tests for photo upload, moderation and download endpoints."""

import asyncio
import zipfile
from io import BytesIO

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from photoshare.core.config import get_settings
from photoshare.models.audit import PhotoDeletion, PhotoUploadHistory
from photoshare.models.event import EventStatus
from photoshare.models.photo import Photo, PhotoStatus
from photoshare.services.media import event_folder_name
from photoshare.services.moderation_service import ModerationService


async def _count(db_session, model) -> int:
    return (await db_session.execute(select(func.count()).select_from(model))).scalar()


@pytest.mark.asyncio
async def test_upload_to_live_event(
    client: AsyncClient, db_session, make_event, storage, image_bytes
):
    """Test guest upload stores files, previews and counters."""
    event = await make_event(EventStatus.LIVE)

    response = await client.post(
        f"/api/v1/photos/upload?event={event.id}",
        files=[
            ("photos", ("one.jpg", image_bytes(), "image/jpeg")),
            ("photos", ("clip.mp4", b"video-bytes", "video/mp4")),
        ],
    )

    assert response.status_code == 201
    uploaded = response.json()["uploaded"]
    assert len(uploaded) == 2

    folder = event_folder_name(event.id, event.name, event.created_at)
    image, video = uploaded
    assert image["status"] == "approved"
    assert image["filename"].startswith(f"{folder}/")
    assert image["filename"].endswith("-one.jpg")
    assert image["previewUrl"].endswith("-one-preview.jpg")
    assert await storage.exists(image["filename"])
    assert video["mediaType"] == "video"
    assert video["previewUrl"] == video["url"]

    await db_session.refresh(event)
    assert event.photo_count == 2
    assert await _count(db_session, PhotoUploadHistory) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "event_status", [EventStatus.SCHEDULED, EventStatus.PAUSED, EventStatus.ENDED]
)
async def test_upload_rejected_unless_live(
    client: AsyncClient, make_event, image_bytes, event_status
):
    event = await make_event(event_status)

    response = await client.post(
        f"/api/v1/photos/upload?event={event.id}",
        files=[("photos", ("one.jpg", image_bytes(), "image/jpeg"))],
    )

    assert response.status_code == 403
    assert "Uploads are closed" in response.json()["detail"]


@pytest.mark.asyncio
async def test_upload_validation(client: AsyncClient, make_event, image_bytes):
    event = await make_event()
    files = [("photos", ("one.jpg", image_bytes(), "image/jpeg"))]

    response = await client.post("/api/v1/photos/upload", files=files)
    assert response.status_code == 400

    response = await client.post("/api/v1/photos/upload?event=999", files=files)
    assert response.status_code == 404

    response = await client.post(
        f"/api/v1/photos/upload?event={event.id}",
        files=[("photos", ("doc.pdf", b"%PDF", "application/pdf"))],
    )
    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]


@pytest.mark.asyncio
async def test_preupload_ignores_status(
    client: AsyncClient, make_event, image_bytes, auth_headers: dict, other_headers: dict
):
    event = await make_event(EventStatus.SCHEDULED)
    url = f"/api/v1/photos/admin/{event.id}/preupload"
    files = [("photos", ("one.jpg", image_bytes(), "image/jpeg"))]

    response = await client.post(url, files=files, headers=auth_headers)
    assert response.status_code == 201

    response = await client.post(url, files=files, headers=other_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_moderated_upload_then_approve(
    client: AsyncClient, db_session, make_event, storage, image_bytes, auth_headers: dict
):
    event = await make_event(require_moderation=True)

    response = await client.post(
        f"/api/v1/photos/upload?event={event.id}",
        files=[("photos", ("one.jpg", image_bytes(), "image/jpeg"))],
    )
    pending = response.json()["uploaded"][0]
    assert pending["status"] == "pending"
    assert "/pending/" in pending["filename"]

    public = await client.get(f"/api/v1/photos/event/{event.id}")
    assert public.json() == []

    listed = await client.get(f"/api/v1/photos/event/{event.id}/pending", headers=auth_headers)
    assert [p["id"] for p in listed.json()] == [pending["id"]]

    response = await client.post(
        "/api/v1/photos/moderate/approve",
        json={"ids": [pending["id"], 999]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["updated"] == 1
    assert data["updatedIds"] == [pending["id"]]
    assert data["notFound"] == [999]
    assert data["failed"] == []

    photo = (
        await db_session.execute(select(Photo).where(Photo.id == pending["id"]))
    ).scalar_one()
    assert photo.status == PhotoStatus.APPROVED.value
    assert "pending" not in photo.filename.split("/")
    assert "pending" not in photo.preview_filename.split("/")
    assert await storage.exists(photo.filename)
    assert not await storage.exists(pending["filename"])

    public = await client.get(f"/api/v1/photos/event/{event.id}")
    assert [p["id"] for p in public.json()] == [pending["id"]]


@pytest.mark.asyncio
async def test_approve_with_missing_file_counts_as_moved(
    client: AsyncClient, db_session, make_event, make_photo, storage, auth_headers: dict
):
    event = await make_event(require_moderation=True)
    photo = await make_photo(event, "7-event_x/pending/1-a.jpg", status=PhotoStatus.PENDING)
    await storage.delete(photo.filename)

    response = await client.post(
        "/api/v1/photos/moderate/approve", json={"ids": [photo.id]}, headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["updated"] == 1
    await db_session.refresh(photo)
    assert photo.filename == "7-event_x/1-a.jpg"


@pytest.mark.asyncio
async def test_moderation_request_errors(
    client: AsyncClient, make_event, make_photo, auth_headers: dict, other_headers: dict
):
    event = await make_event(require_moderation=True)
    photo = await make_photo(event, "1-event_x/pending/1-a.jpg", status=PhotoStatus.PENDING)

    response = await client.post(
        "/api/v1/photos/moderate/approve", json={"ids": []}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "ids are required"

    response = await client.post(
        "/api/v1/photos/moderate/reject", json={"ids": [404, 405]}, headers=auth_headers
    )
    assert response.status_code == 404

    response = await client.post(
        "/api/v1/photos/moderate/approve", json={"ids": [photo.id]}, headers=other_headers
    )
    assert response.status_code == 403

    response = await client.post("/api/v1/photos/moderate/approve", json={"ids": [photo.id]})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_reject_adjusts_counters_and_logs(
    client: AsyncClient, db_session, make_event, make_photo, storage, cleanup, auth_headers: dict
):
    event = await make_event(photo_count=1, like_count=1, deleted_photo_count=0)
    first = await make_photo(
        event, "1-event_x/1-a.jpg", likes=2, preview_filename="1-event_x/1-a-preview.jpg"
    )
    second = await make_photo(event, "1-event_x/2-b.jpg", likes=1)

    response = await client.post(
        "/api/v1/photos/moderate/reject",
        json={"ids": [first.id, second.id, 999]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"deleted": 2, "notFound": [999]}

    await db_session.refresh(event)
    assert event.photo_count == 0
    assert event.like_count == 0
    assert event.deleted_photo_count == 2
    assert await _count(db_session, Photo) == 0
    assert await _count(db_session, PhotoDeletion) == 2

    await cleanup.drain()
    assert not await storage.exists(first.filename)
    assert not await storage.exists(first.preview_filename)
    assert not await storage.exists(second.filename)


@pytest.mark.asyncio
async def test_delete_single_photo(
    client: AsyncClient,
    db_session,
    make_event,
    make_photo,
    cleanup,
    storage,
    auth_headers: dict,
    other_headers: dict,
):
    event = await make_event(photo_count=1)
    photo = await make_photo(event, "1-event_x/1-a.jpg")

    response = await client.delete(f"/api/v1/photos/{photo.id}", headers=other_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/photos/{photo.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"deleted": True}

    await db_session.refresh(event)
    assert event.photo_count == 0
    assert event.deleted_photo_count == 1
    await cleanup.drain()
    assert not await storage.exists("1-event_x/1-a.jpg")

    response = await client.delete(f"/api/v1/photos/{photo.id}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_like_photo(client: AsyncClient, db_session, make_event, make_photo):
    event = await make_event()
    photo = await make_photo(event, "1-event_x/1-a.jpg", likes=4)

    response = await client.post(f"/api/v1/photos/{photo.id}/like")

    assert response.status_code == 200
    assert response.json() == {"likes": 5}
    await db_session.refresh(event)
    assert event.like_count == 1

    response = await client.post("/api/v1/photos/999/like")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_sorted_by_likes(client: AsyncClient, make_event, make_photo):
    event = await make_event()
    low = await make_photo(event, "1-event_x/1-a.jpg", likes=1)
    high = await make_photo(event, "1-event_x/2-b.jpg", likes=9)

    response = await client.get(f"/api/v1/photos/event/{event.id}?sort=likes")

    assert [p["id"] for p in response.json()] == [high.id, low.id]
    assert response.json()[0]["url"] == "http://test/uploads/1-event_x/2-b.jpg"

    response = await client.get("/api/v1/photos/recent?limit=1")
    assert [p["id"] for p in response.json()] == [high.id]


@pytest.mark.asyncio
async def test_pending_count_scoped_to_owner(
    client: AsyncClient,
    make_event,
    make_photo,
    other_organizer,
    auth_headers: dict,
    root_headers: dict,
):
    mine = await make_event(require_moderation=True)
    theirs = await make_event(require_moderation=True, owner_id=other_organizer.id)
    await make_photo(mine, "1/pending/1-a.jpg", status=PhotoStatus.PENDING)
    await make_photo(mine, "1/pending/2-b.jpg", status=PhotoStatus.PENDING)
    await make_photo(theirs, "2/pending/3-c.jpg", status=PhotoStatus.PENDING)

    response = await client.get("/api/v1/photos/pending/count", headers=auth_headers)
    assert response.json() == {"total": 2, "byEvent": {str(mine.id): 2}}

    response = await client.get("/api/v1/photos/pending/count", headers=root_headers)
    assert response.json()["total"] == 3


@pytest.mark.asyncio
async def test_download_archive(client: AsyncClient, make_event, make_photo):
    event = await make_event(name="Summer Party")
    await make_photo(event, "1-event_x/1-a.jpg", data=b"first")
    await make_photo(event, "1-event_x/2-b.png", data=b"second")
    await make_photo(event, "1-event_x/pending/3-c.jpg", status=PhotoStatus.PENDING)

    response = await client.get(f"/api/v1/photos/event/{event.id}/download")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert 'filename="Summer_Party-photos.zip"' in response.headers["content-disposition"]
    with zipfile.ZipFile(BytesIO(response.content)) as archive:
        assert sorted(archive.namelist()) == ["photo-1.jpg", "photo-2.png"]
        assert archive.read("photo-1.jpg") == b"first"


@pytest.mark.asyncio
async def test_download_without_photos(client: AsyncClient, make_event):
    event = await make_event()
    response = await client.get(f"/api/v1/photos/event/{event.id}/download")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reject_subtracts_likes_of_removed_photos(
    client: AsyncClient, db_session, make_event, make_photo, auth_headers: dict
):
    event = await make_event(photo_count=10, like_count=20, deleted_photo_count=4)
    photos = [
        await make_photo(event, f"1-event_x/{i}-a.jpg", likes=likes)
        for i, likes in enumerate((2, 3, 5), start=1)
    ]

    response = await client.post(
        "/api/v1/photos/moderate/reject",
        json={"ids": [p.id for p in photos]},
        headers=auth_headers,
    )

    assert response.json() == {"deleted": 3, "notFound": []}
    await db_session.refresh(event)
    assert event.photo_count == 7
    assert event.like_count == 10
    assert event.deleted_photo_count == 7


@pytest.mark.asyncio
async def test_concurrent_likes_and_rejects_keep_counters(
    db_session, session_maker, make_event, make_photo, storage
):
    event = await make_event(photo_count=6, like_count=5)
    liked = await make_photo(event, "1-event_x/0-liked.jpg")
    rejected = [
        await make_photo(event, f"1-event_x/{i}-gone.jpg", likes=1) for i in range(1, 6)
    ]

    async def like():
        async with session_maker() as db:
            return await ModerationService(db, storage).like(liked.id)

    async def reject(photo_id: int):
        async with session_maker() as db:
            return await ModerationService(db, storage).reject([photo_id])

    results = await asyncio.gather(
        *(like() for _ in range(20)), *(reject(p.id) for p in rejected)
    )

    assert max(results[:20]) == 20
    assert all(r.deleted == 1 for r in results[20:])

    await db_session.refresh(event)
    await db_session.refresh(liked)
    assert liked.likes == 20
    assert event.photo_count == 1
    assert event.like_count == 20
    assert event.deleted_photo_count == 5


@pytest.mark.asyncio
async def test_approve_reports_path_outside_uploads_as_failed(
    client: AsyncClient, db_session, make_event, make_photo, auth_headers: dict
):
    event = await make_event(require_moderation=True)
    good = await make_photo(event, "1-event_x/pending/1-a.jpg", status=PhotoStatus.PENDING)
    bad = Photo(
        event_id=event.id,
        filename="../escape/pending/2-b.jpg",
        original_name="2-b.jpg",
        status=PhotoStatus.PENDING.value,
    )
    db_session.add(bad)
    await db_session.commit()
    await db_session.refresh(bad)

    response = await client.post(
        "/api/v1/photos/moderate/approve",
        json={"ids": [good.id, bad.id]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["updatedIds"] == [good.id]
    assert data["failed"] == [{"id": bad.id, "reason": "move_failed"}]
    await db_session.refresh(bad)
    assert bad.status == PhotoStatus.PENDING.value


@pytest.mark.asyncio
async def test_upload_over_size_limit(
    client: AsyncClient, make_event, image_bytes, monkeypatch
):
    monkeypatch.setattr(get_settings(), "max_image_size", 10)
    event = await make_event()

    response = await client.post(
        f"/api/v1/photos/upload?event={event.id}",
        files=[("photos", ("one.jpg", image_bytes(), "image/jpeg"))],
    )

    assert response.status_code == 400
    assert "File too large" in response.json()["detail"]
