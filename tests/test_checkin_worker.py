from datetime import datetime, timezone

import pytest

from app.celery_app import celery_app
from app.services import lifecycle
from app.types.checkin_contract import FollowUp
from app.workers import checkin as checkin_worker


@pytest.fixture
def sent_tasks(monkeypatch):
    calls = []

    def fake_send_task(name, args=None, **kwargs):
        calls.append((name, args, kwargs))

    monkeypatch.setattr(celery_app, "send_task", fake_send_task)
    return calls


def test_enqueue_follow_up_uses_eta(sent_tasks):
    fire_at = datetime(2026, 10, 18, 22, 15, tzinfo=timezone.utc)

    checkin_worker.enqueue_follow_up(FollowUp.REMINDER, "c1", fire_at)
    checkin_worker.enqueue_follow_up(FollowUp.ESCALATION, "c1", fire_at)

    assert sent_tasks == [
        ("app.workers.checkin.handle_reminder", ["c1"], {"eta": fire_at, "queue": "checkin"}),
        ("app.workers.checkin.handle_escalation", ["c1"], {"eta": fire_at, "queue": "checkin"}),
    ]


def test_beat_scans_every_minute():
    entry = celery_app.conf.beat_schedule["scan-due-checkins"]
    assert entry["task"] == "app.workers.checkin.scan_due"
    assert entry["schedule"].minute == set(range(60))


def test_timer_tasks_delegate_to_lifecycle(monkeypatch):
    seen = []

    async def fake_reminder(check_in_id):
        seen.append(("reminder", check_in_id))
        return True

    async def fake_escalation(check_in_id):
        seen.append(("escalation", check_in_id))
        return False

    monkeypatch.setattr(lifecycle, "handle_reminder", fake_reminder)
    monkeypatch.setattr(lifecycle, "handle_escalation", fake_escalation)

    assert checkin_worker.handle_reminder.run("c1") is True
    assert checkin_worker.handle_escalation.run("c2") is False
    assert seen == [("reminder", "c1"), ("escalation", "c2")]


def test_scan_due_passes_celery_scheduler(monkeypatch):
    async def fake_tick(schedule):
        assert schedule is checkin_worker.enqueue_follow_up
        return []

    monkeypatch.setattr(lifecycle, "run_tick", fake_tick)

    assert checkin_worker.scan_due.run() == []


def test_worker_ready_queues_recovery(sent_tasks):
    checkin_worker._recover_on_startup()
    assert sent_tasks == [("app.workers.checkin.recover_obligations", None, {"queue": "checkin"})]
