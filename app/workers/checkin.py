"""Celery tasks driving the check-in lifecycle.

The beat tick runs ``scan_due``; each started check-in enqueues one
``handle_reminder`` and one ``handle_escalation`` task with an ``eta``. Tasks
carry only the check-in id and never raise for store or transport failures,
so Celery does not retry them.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from celery.signals import worker_ready

from app.celery_app import celery_app
from app.services import lifecycle
from app.types.checkin_contract import FollowUp
import db

_LOGGER = logging.getLogger(__name__)

_TASK_NAMES = {
    FollowUp.REMINDER: "app.workers.checkin.handle_reminder",
    FollowUp.ESCALATION: "app.workers.checkin.handle_escalation",
}


def enqueue_follow_up(kind: FollowUp, check_in_id: str, fire_at: datetime) -> None:
    """Celery-backed ``FollowUpScheduler``: one-shot task at ``fire_at``."""
    celery_app.send_task(
        _TASK_NAMES[kind],
        args=[check_in_id],
        eta=fire_at,
        queue="checkin",
    )


async def _run(coro):
    # Each asyncio.run gets a fresh loop; pooled connections must not outlive it.
    try:
        return await coro
    finally:
        await db.dispose_engine()


# ---------------------------------------------------------------------------
# Celery Tasks
# ---------------------------------------------------------------------------

@celery_app.task(name="app.workers.checkin.scan_due")
def scan_due():  # noqa: D401
    """Start check-ins for every profile due this minute."""
    started = asyncio.run(_run(lifecycle.run_tick(enqueue_follow_up)))
    return [c.id for c in started]


@celery_app.task(name="app.workers.checkin.handle_reminder")
def handle_reminder(check_in_id: str):  # noqa: D401
    """Reminder timer for one check-in."""
    return asyncio.run(_run(lifecycle.handle_reminder(check_in_id)))


@celery_app.task(name="app.workers.checkin.handle_escalation")
def handle_escalation(check_in_id: str):  # noqa: D401
    """Escalation timer for one check-in."""
    return asyncio.run(_run(lifecycle.handle_escalation(check_in_id)))


@celery_app.task(name="app.workers.checkin.recover_obligations")
def recover_obligations():  # noqa: D401
    """Re-arm reminder/escalation timers for check-ins still open in the store."""
    return asyncio.run(_run(lifecycle.recover_obligations(enqueue_follow_up)))


@worker_ready.connect
def _recover_on_startup(sender=None, **kwargs):
    _LOGGER.info("Worker ready; queueing timer recovery")
    celery_app.send_task("app.workers.checkin.recover_obligations", queue="checkin")
