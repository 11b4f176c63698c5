"""Celery application instance shared across the backend.

Start a worker and the beat scheduler with:
    celery -A app.celery_app worker -Q checkin -l info --concurrency=2
    celery -A app.celery_app beat -l info
"""

from celery import Celery
from celery.schedules import crontab

from config import configure_logging, settings

configure_logging()

BROKER_URL = settings.REDIS_URL

celery_app = Celery("checkin_backend", broker=BROKER_URL, backend=BROKER_URL)

# Global task settings
celery_app.conf.task_acks_late = True
celery_app.conf.task_reject_on_worker_lost = True
celery_app.conf.timezone = "UTC"
celery_app.conf.enable_utc = True
# eta tasks wait in the broker longer than the default one-hour visibility window
celery_app.conf.broker_transport_options = {"visibility_timeout": 2 * 60 * 60}

celery_app.conf.task_routes = {
    "app.workers.checkin.*": {"queue": "checkin"},
}

# Beat schedule: scan for due check-ins at the top of every minute
celery_app.conf.beat_schedule = {
    "scan-due-checkins": {
        "task": "app.workers.checkin.scan_due",
        "schedule": crontab(minute="*"),
    }
}

# --- Ensure tasks are registered ---
import app.workers.checkin
