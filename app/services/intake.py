"""Handle an inbound SMS reply from a user."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from app.services import messages
from app.types.checkin_contract import CheckInView
from app.utils import sms
from config import settings
import db

_LOGGER = logging.getLogger(__name__)


def is_affirmative(text: Optional[str]) -> bool:
    """Exact token match after trimming and upper-casing ("y" yes, "yes" no)."""
    return (text or "").strip().upper() == settings.AFFIRMATIVE_TOKEN


async def handle_reply(
    phone_number: str, text: Optional[str], now: Optional[datetime] = None
) -> CheckInView | None:
    """Record the reply and, if affirmative, complete the latest open check-in.

    Returns the completed check-in, or ``None`` when nothing was completed.
    """
    now = now or datetime.now(timezone.utc)
    body = (text or "").strip()

    try:
        await db.insert_response(phone_number, body, now)
    except db.STORE_ERRORS:
        _LOGGER.exception("Error saving response from %s", phone_number)

    if not is_affirmative(body):
        return None

    sms.send_sms(phone_number, messages.confirmation())

    completed = None
    try:
        completed = await db.complete_latest_check_in(phone_number, now)
    except db.STORE_ERRORS:
        _LOGGER.exception("Error completing check-in for %s", phone_number)

    if completed is None:
        _LOGGER.warning("No open check-in to complete for %s", phone_number)
    else:
        _LOGGER.info("Check-in %s completed by %s", completed.id, phone_number)
    return completed
