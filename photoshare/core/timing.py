"""Time helpers for the event lifecycle."""

import time

from photoshare.core.config import get_settings


def get_auto_end_duration_ms() -> int:
    """Configured lifetime of a live event in milliseconds."""
    return get_settings().event_auto_end_duration_ms


def now_ms() -> int:
    """Current wall-clock time as Unix milliseconds."""
    return int(time.time() * 1000)
