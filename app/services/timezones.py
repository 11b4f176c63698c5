"""Resolve a profile's named timezone to its current local wall-clock time."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import settings


def is_supported(tz_name: Optional[str], supported: Iterable[str] | None = None) -> bool:
    if not tz_name:
        return False
    zones = settings.SUPPORTED_TIMEZONES if supported is None else supported
    return tz_name in zones


def local_now(tz_name: str, now_utc: Optional[datetime] = None) -> Optional[datetime]:
    """``now_utc`` converted to ``tz_name``; ``None`` if the zone is unknown."""
    now_utc = now_utc or datetime.now(timezone.utc)
    if now_utc.tzinfo is None:
        raise ValueError("now_utc must be timezone-aware")
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return None
    return now_utc.astimezone(zone)
