"""Clock and duration helpers."""

from __future__ import annotations

from datetime import datetime

from .config import TIMEZONE


def utc_now() -> datetime:
    """Return the current datetime in UTC."""
    return datetime.now(TIMEZONE)


def format_duration(seconds: float) -> str:
    """Format a recording length as m:ss."""
    total = int(max(0, seconds))
    minutes, remaining = divmod(total, 60)
    return f"{minutes}:{remaining:02d}"
