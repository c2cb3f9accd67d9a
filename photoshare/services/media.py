"""Upload naming, type checks and preview generation."""

import asyncio
import re
import unicodedata
from datetime import datetime, timezone
from io import BytesIO
from pathlib import PurePosixPath

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from photoshare.core.config import get_settings
from photoshare.services.storage import PENDING_SEGMENT, FileStorage

IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
VIDEO_TYPES = {
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
}


def slugify(text: str | None) -> str:
    normalized = unicodedata.normalize("NFKD", str(text or ""))
    ascii_only = "".join(c for c in normalized if not unicodedata.combining(c))
    cleaned = re.sub(r"[^a-zA-Z0-9\-_.\s]", "", ascii_only).strip()
    return re.sub(r"\s+", "-", cleaned).lower()


def event_folder_name(event_id: int, name: str | None, created_at: int | None) -> str:
    """Folder holding everything stored for one event.

    Format: ``<id>-event_<slug>_<YYYY-MM-DD>`` using the creation date.
    """
    if created_at:
        day = datetime.fromtimestamp(created_at / 1000, tz=timezone.utc)
    else:
        day = datetime.now(timezone.utc)
    slug = slugify(name) or "event"
    return f"{event_id}-event_{slug}_{day.strftime('%Y-%m-%d')}"


def upload_subdir(folder: str, require_moderation: bool) -> str:
    return f"{folder}/{PENDING_SEGMENT}" if require_moderation else folder


def safe_filename(original: str | None) -> str:
    base = PurePosixPath(str(original or "upload").replace("\\", "/")).name
    return re.sub(r"[^a-zA-Z0-9_.\-]+", "_", base) or "upload"


def media_kind(content_type: str | None) -> str | None:
    """``image``/``video`` for accepted content types, None otherwise."""
    ctype = (content_type or "").lower()
    if ctype in IMAGE_TYPES:
        return "image"
    if ctype in VIDEO_TYPES:
        return "video"
    return None


def max_size_for(kind: str) -> int:
    settings = get_settings()
    return settings.max_video_size if kind == "video" else settings.max_image_size


def preview_path_for(relative_path: str) -> str:
    path = PurePosixPath(relative_path)
    return str(path.with_name(f"{path.stem}-preview.jpg"))


def _render_preview(data: bytes, max_size: int, quality: int) -> bytes:
    with Image.open(BytesIO(data)) as im:
        im = ImageOps.exif_transpose(im)
        im = im.convert("RGB")
        im.thumbnail((max_size, max_size))
        out = BytesIO()
        im.save(out, format="JPEG", quality=quality)
        return out.getvalue()


async def generate_preview(
    storage: FileStorage,
    relative_path: str,
    data: bytes,
) -> str | None:
    """Store a bounded JPEG derivative next to the original.

    Returns the preview path, or None when the image cannot be decoded; the
    original is served instead in that case.
    """
    settings = get_settings()
    try:
        rendered = await asyncio.to_thread(
            _render_preview, data, settings.preview_max_size, settings.preview_quality
        )
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Preview generation failed for {relative_path}: {e}")
        return None

    preview = preview_path_for(relative_path)
    await storage.write(preview, rendered)
    return preview
