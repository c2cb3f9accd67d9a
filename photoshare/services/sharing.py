"""Gallery links, QR images and schedule parsing for events."""

import base64
import re
from datetime import datetime, timezone
from io import BytesIO
from urllib.parse import quote

import qrcode
from loguru import logger

from photoshare.core.config import get_settings

_TIME_WITH_SPACES = re.compile(r"^\d{1,2}\s*:\s*\d{2}$")


def build_access_link(event_id: int, date: str | None) -> str:
    """Public gallery link; hash params survive static hosting."""
    frontend_url = get_settings().frontend_url.rstrip("/")
    return f"{frontend_url}/gallery.html#event={event_id}&date={quote(date or '')}"


def generate_qr_code(url: str) -> str:
    """Encode ``url`` as a PNG QR code data URL. Empty string on failure."""
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=1,
        )
        qr.add_data(url)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buffer = BytesIO()
        img.save(buffer, format="PNG")
    except Exception as e:
        logger.warning(f"QR generation failed for {url}: {e}")
        return ""

    img_str = base64.b64encode(buffer.getvalue()).decode()
    return f"data:image/png;base64,{img_str}"


def combine_date_and_time(date_str: str | None, time_str: str | None) -> int | None:
    """Parse ``YYYY-MM-DD`` plus optional ``HH:MM[:SS]`` as UTC milliseconds."""
    if not date_str:
        return None
    safe_date = str(date_str).strip()
    safe_time = str(time_str or "").strip()
    if _TIME_WITH_SPACES.match(safe_time):
        safe_time = re.sub(r"\s+", "", safe_time)
    if re.match(r"^\d:", safe_time):
        safe_time = f"0{safe_time}"
    if not safe_time:
        safe_time = "00:00:00"
    elif len(safe_time) == 5:
        safe_time = f"{safe_time}:00"

    try:
        parsed = datetime.fromisoformat(f"{safe_date}T{safe_time}")
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def uploads_url(base_url: str, relative_path: str | None) -> str:
    """Public URL of a stored file under the ``/uploads`` mount."""
    if not relative_path:
        return ""
    clean = str(relative_path).replace("\\", "/").lstrip("/")
    return f"{str(base_url).rstrip('/')}/uploads/{clean}"
