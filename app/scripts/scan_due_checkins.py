"""Run a single check-in scan outside Celery beat.
Useful from a platform cron (every minute) or by hand:
    python -m app.scripts.scan_due_checkins
Reminder/escalation timers are still enqueued on the Celery broker.
"""

from __future__ import annotations

import asyncio
import logging

from app.services import lifecycle
from app.workers.checkin import enqueue_follow_up
from config import configure_logging
import db

_LOGGER = logging.getLogger(__name__)


async def main() -> None:
    try:
        started = await lifecycle.run_tick(enqueue_follow_up)
    finally:
        await db.dispose_engine()
    _LOGGER.info("[CRON] scan_due_checkins: %d check-ins started", len(started))


if __name__ == "__main__":  # pragma: no cover
    configure_logging()
    _LOGGER.info("[CRON] scan_due_checkins: job started")
    asyncio.run(main())
