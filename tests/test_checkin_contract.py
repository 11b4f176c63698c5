import pytest

from app.types.checkin_contract import (
    CheckInStatus, CheckInView, UserProfile, can_transition, sources_for,
)


def _profile(**kw):
    base = dict(id="u1", phone_number="+61400000001", first_name="Ada")
    base.update(kw)
    return UserProfile(**base)


def test_transitions_only_move_forward():
    assert can_transition(CheckInStatus.PENDING, CheckInStatus.REMINDED)
    assert can_transition("reminded", "escalated")
    assert can_transition(CheckInStatus.ESCALATED, CheckInStatus.COMPLETED)
    assert not can_transition(CheckInStatus.REMINDED, CheckInStatus.PENDING)
    assert not can_transition(CheckInStatus.ESCALATED, CheckInStatus.REMINDED)
    assert not can_transition(CheckInStatus.COMPLETED, CheckInStatus.ESCALATED)


def test_sources_for_targets():
    assert sources_for(CheckInStatus.REMINDED) == ("pending",)
    assert sources_for(CheckInStatus.ESCALATED) == ("pending", "reminded")
    assert sources_for(CheckInStatus.COMPLETED) == ("escalated", "pending", "reminded")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("09:00", (9, 0)),
        ("9:05", (9, 5)),
        ("23:59:00", (23, 59)),
        ("24:00", None),
        ("09:60", None),
        ("nine", None),
        ("0900", None),
        ("", None),
        (None, None),
    ],
)
def test_check_in_time_parsing(raw, expected):
    assert _profile(check_in_time=raw).check_in_hm == expected


def test_blank_timezone_is_none():
    assert _profile(timezone="  ").timezone is None


@pytest.mark.parametrize(
    "status, expected",
    [("pending", True), ("reminded", True), ("escalated", False), ("completed", False)],
)
def test_check_in_is_open(status, expected):
    from datetime import datetime, timezone

    view = CheckInView(
        id="c1", user_id="u1", phone_number="+61400000001", status=status,
        scheduled_for=datetime(2026, 10, 18, 22, 0, tzinfo=timezone.utc),
    )
    assert view.is_open is expected
