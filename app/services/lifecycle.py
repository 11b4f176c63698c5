"""Check-in lifecycle: start, reminder, escalation and timer recovery.

Timers carry only the check-in id. Each handler re-reads the stored row when
it fires and claims its transition with a conditional update *before* sending,
so a handler fired twice, or racing an affirmative reply, sends at most once.
Timers are never cancelled; once the check-in has moved on they become no-ops.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Protocol

from app.services import messages, scanner, timezones
from app.types.checkin_contract import (
    CheckInStatus, CheckInView, FollowUp, UserProfile, can_transition,
)
from app.utils import sms
from config import settings
import db

_LOGGER = logging.getLogger(__name__)


class FollowUpScheduler(Protocol):
    def __call__(self, kind: FollowUp, check_in_id: str, fire_at: datetime) -> None: ...


def reminder_delay() -> timedelta:
    return timedelta(minutes=settings.REMINDER_DELAY_MINUTES)


def escalation_delay() -> timedelta:
    return timedelta(minutes=settings.ESCALATION_DELAY_MINUTES)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _schedule(schedule: FollowUpScheduler, kind: FollowUp, check_in_id: str, fire_at: datetime):
    try:
        schedule(kind, check_in_id, fire_at)
    except Exception:  # noqa: BLE001
        # The row stays open, so recovery re-enqueues this timer.
        _LOGGER.exception("Failed to schedule %s for check-in %s", kind.value, check_in_id)


# ---------------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------------

async def start(
    profile: UserProfile, schedule: FollowUpScheduler, now: Optional[datetime] = None
) -> CheckInView | None:
    """Create the day's check-in, send the first SMS and arm both timers."""
    now = now or _utcnow()
    local = timezones.local_now(profile.timezone, now) if profile.timezone else None
    check_in_date = (local or now).date()

    try:
        check_in = await db.insert_check_in(profile, now, check_in_date)
    except db.STORE_ERRORS:
        _LOGGER.exception("Error creating check-in for %s", profile.phone_number)
        return None
    if check_in is None:
        _LOGGER.info("Check-in for user %s on %s already started", profile.id, check_in_date)
        return None

    sms.send_sms(
        profile.phone_number,
        messages.initial(profile.first_name, settings.AFFIRMATIVE_TOKEN),
    )
    _schedule(schedule, FollowUp.REMINDER, check_in.id, now + reminder_delay())
    _schedule(schedule, FollowUp.ESCALATION, check_in.id, now + escalation_delay())

    _LOGGER.info("Scheduled check-in %s for %s", check_in.id, profile.phone_number)
    return check_in


async def run_tick(schedule: FollowUpScheduler, now: Optional[datetime] = None) -> List[CheckInView]:
    """One scanner tick: start a check-in for every due profile."""
    now = now or _utcnow()
    started = []
    for profile in await scanner.find_due_profiles(now):
        check_in = await start(profile, schedule, now)
        if check_in is not None:
            started.append(check_in)
    return started


# ---------------------------------------------------------------------------
# Timer handlers
# ---------------------------------------------------------------------------

async def _load(check_in_id: str) -> CheckInView | None:
    try:
        check_in = await db.get_check_in(check_in_id)
    except db.STORE_ERRORS:
        _LOGGER.exception("Error loading check-in %s", check_in_id)
        return None
    if check_in is None:
        _LOGGER.warning("Check-in %s not found", check_in_id)
    return check_in


async def handle_reminder(check_in_id: str, now: Optional[datetime] = None) -> bool:
    """Send the reminder for ``check_in_id`` unless it is no longer due.

    Returns ``True`` only when this call sent the reminder.
    """
    now = now or _utcnow()
    check_in = await _load(check_in_id)
    if check_in is None:
        return False
    if (
        check_in.reminder_sent_at
        or check_in.completed_at
        or not can_transition(check_in.status, CheckInStatus.REMINDED)
    ):
        _LOGGER.debug("Reminder for %s not needed (status=%s)", check_in_id, check_in.status.value)
        return False

    try:
        profile = await db.get_profile(check_in.user_id)
        if profile is None:
            _LOGGER.warning("Profile %s not found for check-in %s", check_in.user_id, check_in_id)
            return False
        if not await db.claim_reminder(check_in_id, now):
            _LOGGER.info("Reminder for %s already handled", check_in_id)
            return False
    except db.STORE_ERRORS:
        _LOGGER.exception("Error processing reminder for %s", check_in_id)
        return False

    sms.send_sms(
        check_in.phone_number,
        messages.reminder(profile.first_name, settings.AFFIRMATIVE_TOKEN),
    )
    _LOGGER.info("Reminder sent to %s", check_in.phone_number)
    return True


async def handle_escalation(check_in_id: str, now: Optional[datetime] = None) -> bool:
    """Notify the first-choice emergency contact for an unanswered check-in.

    With no contact on file nothing is written and the status is unchanged.
    Returns ``True`` only when this call sent the escalation.
    """
    now = now or _utcnow()
    check_in = await _load(check_in_id)
    if check_in is None:
        return False
    if (
        check_in.escalated_at
        or check_in.completed_at
        or not can_transition(check_in.status, CheckInStatus.ESCALATED)
    ):
        _LOGGER.debug("Escalation for %s not needed (status=%s)", check_in_id, check_in.status.value)
        return False

    try:
        profile = await db.get_profile(check_in.user_id)
        if profile is None:
            _LOGGER.warning("Profile %s not found for check-in %s", check_in.user_id, check_in_id)
            return False
        contact = await db.fetch_primary_contact(check_in.user_id)
        if contact is None:
            _LOGGER.warning("No emergency contact found for user %s", check_in.user_id)
            return False
        if not await db.claim_escalation(check_in_id, now):
            _LOGGER.info("Escalation for %s already handled", check_in_id)
            return False
    except db.STORE_ERRORS:
        _LOGGER.exception("Error processing escalation for %s", check_in_id)
        return False

    sms.send_sms(contact.phone_number, messages.escalation(contact.first_name, profile.first_name))
    _LOGGER.info("Escalation sent for %s to %s", profile.first_name, contact.phone_number)
    return True


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------

async def recover_obligations(schedule: FollowUpScheduler, now: Optional[datetime] = None) -> int:
    """Re-arm timers for open check-ins from stored rows.

    Returns the number of timers enqueued. Overdue timers fire immediately.
    """
    now = now or _utcnow()
    since = now - timedelta(hours=settings.RECOVERY_LOOKBACK_HOURS)
    try:
        open_check_ins = await db.fetch_open_check_ins(since)
    except db.STORE_ERRORS:
        _LOGGER.exception("Error fetching open check-ins for recovery")
        return 0

    count = 0
    for check_in in open_check_ins:
        if not check_in.is_open:
            continue
        if check_in.status == CheckInStatus.PENDING and check_in.reminder_sent_at is None:
            fire_at = max(now, check_in.scheduled_for + reminder_delay())
            _schedule(schedule, FollowUp.REMINDER, check_in.id, fire_at)
            count += 1
        if check_in.escalated_at is None:
            fire_at = max(now, check_in.scheduled_for + escalation_delay())
            _schedule(schedule, FollowUp.ESCALATION, check_in.id, fire_at)
            count += 1
    if count:
        _LOGGER.info("Recovered %d pending timers", count)
    return count
