"""Celery application for background jobs (counter reconciliation)."""
from celery import Celery
from celery.signals import setup_logging

from community.core.config import settings
from community.core.logging import configure_logging

celery_app = Celery(
    "community",
    broker=settings.CELERY_BROKER_URL,
    include=["community.workers.reconcile"],
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "reconcile-counters": {
            "task": "community.workers.reconcile.reconcile_counters_task",
            "schedule": float(settings.COUNTER_RECONCILE_INTERVAL_SECONDS),
        },
    },
)


@setup_logging.connect
def configure_worker_logging(**kwargs) -> None:
    """Workers and beat log through the same structlog setup as the API."""
    configure_logging(settings)
