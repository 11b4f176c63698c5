"""Pydantic models and the check-in state machine shared by the scanner,
the lifecycle handlers, the workers and the store.

These classes are intentionally framework-agnostic so they can be reused by
workers, API handlers, and tests without pulling in FastAPI or database
layers.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator


class CheckInStatus(str, enum.Enum):
    PENDING = "pending"
    REMINDED = "reminded"
    ESCALATED = "escalated"
    COMPLETED = "completed"


class FollowUp(str, enum.Enum):
    """The two one-shot timers scheduled for every check-in."""

    REMINDER = "reminder"
    ESCALATION = "escalation"


# Forward-only. A late affirmative reply may still close an escalated check-in.
TRANSITIONS: Dict[CheckInStatus, FrozenSet[CheckInStatus]] = {
    CheckInStatus.PENDING: frozenset(
        {CheckInStatus.REMINDED, CheckInStatus.ESCALATED, CheckInStatus.COMPLETED}
    ),
    CheckInStatus.REMINDED: frozenset({CheckInStatus.ESCALATED, CheckInStatus.COMPLETED}),
    CheckInStatus.ESCALATED: frozenset({CheckInStatus.COMPLETED}),
    CheckInStatus.COMPLETED: frozenset(),
}


def can_transition(src: CheckInStatus | str, dst: CheckInStatus | str) -> bool:
    return CheckInStatus(dst) in TRANSITIONS[CheckInStatus(src)]


def sources_for(dst: CheckInStatus) -> Tuple[str, ...]:
    """Statuses from which ``dst`` may be entered, as stored string values."""
    return tuple(sorted(src.value for src, targets in TRANSITIONS.items() if dst in targets))


# ──────────────────────────────
# Read models
# ──────────────────────────────


class UserProfile(BaseModel):
    """A user enrolled in daily check-ins, as read from the profile store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    phone_number: str
    first_name: str
    timezone: Optional[str] = None
    check_in_time: Optional[str] = None  # "HH:MM", user's local wall clock
    pause_end_date: Optional[datetime] = None

    @field_validator("timezone", "check_in_time")
    def _blank_to_none(cls, v):  # noqa: N805
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @property
    def check_in_hm(self) -> Optional[Tuple[int, int]]:
        """``(hour, minute)`` from ``check_in_time`` or ``None`` if malformed.

        Accepts ``HH:MM`` and ``HH:MM:SS`` (the seconds are ignored).
        """
        if not self.check_in_time:
            return None
        parts = self.check_in_time.split(":")
        if len(parts) not in (2, 3):
            return None
        try:
            hour, minute = int(parts[0]), int(parts[1])
        except ValueError:
            return None
        if not (0 <= hour < 24 and 0 <= minute < 60):
            return None
        return hour, minute


class ContactView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    first_name: str
    phone_number: str
    priority: int


class CheckInView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    phone_number: str
    status: CheckInStatus
    scheduled_for: datetime
    initial_sms_sent_at: Optional[datetime] = None
    reminder_sent_at: Optional[datetime] = None
    escalated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in (CheckInStatus.PENDING, CheckInStatus.REMINDED)
