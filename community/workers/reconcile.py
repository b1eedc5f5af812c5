"""Celery task that repairs drifted like/reply/comment counters."""
import asyncio

from community.core.celery_app import celery_app
from community.core.logging import get_logger
from community.db.session import async_session_maker, engine
from community.services.reconcile_service import reconcile_counters

logger = get_logger(__name__)


async def _run(dry_run: bool) -> dict:
    async with async_session_maker() as db:
        report = await reconcile_counters(db, dry_run=dry_run)
    # Pooled connections belong to this event loop; the next run gets a new one
    await engine.dispose()
    return {
        "comments_checked": report.comments_checked,
        "posts_checked": report.posts_checked,
        "drifts": report.drift_count,
        "fixed": report.fixed,
    }


@celery_app.task(name="community.workers.reconcile.reconcile_counters_task")
def reconcile_counters_task(dry_run: bool = False) -> dict:
    summary = asyncio.run(_run(dry_run))
    logger.info("reconcile_task_finished", **summary)
    return summary
