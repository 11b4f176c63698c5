"""Find the profiles whose check-in is due this minute."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from app.services import timezones
from app.types.checkin_contract import UserProfile
import db

_LOGGER = logging.getLogger(__name__)


def _is_paused(profile: UserProfile, local_time: datetime) -> bool:
    pause_end = profile.pause_end_date
    if pause_end is None:
        return False
    if pause_end.tzinfo is None:
        # naive → wall clock in the profile's own zone
        pause_end = pause_end.replace(tzinfo=local_time.tzinfo)
    return local_time < pause_end


def is_due(profile: UserProfile, now_utc: datetime) -> bool:
    if not timezones.is_supported(profile.timezone):
        return False
    hm = profile.check_in_hm
    if hm is None:
        return False
    local_time = timezones.local_now(profile.timezone, now_utc)
    if local_time is None:
        return False
    if _is_paused(profile, local_time):
        return False
    return (local_time.hour, local_time.minute) == hm


async def find_due_profiles(now_utc: Optional[datetime] = None) -> List[UserProfile]:
    """Due profiles in fetch order. A failed fetch yields an empty list."""
    now_utc = now_utc or datetime.now(timezone.utc)
    try:
        profiles = await db.fetch_profiles()
    except db.STORE_ERRORS:
        _LOGGER.exception("Error fetching profiles; skipping this tick")
        return []
    return [p for p in profiles if is_due(p, now_utc)]
