"""Tests for the counter reconciliation job."""
import logging

from celery.signals import setup_logging
from sqlalchemy import delete, update

from community.core.celery_app import celery_app, configure_worker_logging
from community.core.config import settings
from community.core.logging import configure_logging
from community.models.comment import Comment
from community.models.engagement import CommentLike
from community.models.post import Post
from community.services import comment_service, like_service
from community.services.reconcile_service import find_drift, reconcile_counters, repair_drift

from conftest import reload


async def _thread(db, post, alice, bob):
    c1 = await comment_service.create_top_level_comment(db, post.id, alice.id, "C1")
    r1 = await comment_service.create_reply(db, c1.id, bob.id, "R1")
    await like_service.like_comment(db, bob.id, c1.id)
    await like_service.like_post(db, bob.id, post.id)
    return c1, r1


async def test_consistent_store_reports_nothing(db, post, alice, bob):
    await _thread(db, post, alice, bob)

    report = await reconcile_counters(db)

    assert report.drift_count == 0
    assert report.comments_checked == 2
    assert report.posts_checked == 1
    assert not report.fixed


async def test_dry_run_reports_without_fixing(db, post, alice, bob):
    c1, _ = await _thread(db, post, alice, bob)
    await db.execute(update(Comment).where(Comment.id == c1.id).values(like_count=7))
    await db.commit()

    report = await reconcile_counters(db, dry_run=True)

    assert report.drift_count == 1
    drift = report.drifts[0]
    assert (drift.table, drift.row_id, drift.field, drift.stored, drift.actual) == (
        "comments",
        c1.id,
        "like_count",
        7,
        1,
    )
    assert not report.fixed
    assert (await reload(db, Comment, c1.id)).like_count == 7


async def test_fix_repairs_every_counter(db, post, alice, bob):
    c1, r1 = await _thread(db, post, alice, bob)
    # Out-of-band damage: a like row vanishes, counters are overwritten
    await db.execute(delete(CommentLike).where(CommentLike.comment_id == c1.id))
    await db.execute(update(Comment).where(Comment.id == c1.id).values(replies_count=4))
    await db.execute(update(Comment).where(Comment.id == r1.id).values(replies_count=2))
    await db.execute(update(Post).where(Post.id == post.id).values(comment_count=9, like_count=0))
    await db.commit()

    report = await reconcile_counters(db)

    assert report.fixed
    assert report.drift_count == 5
    fresh_c1 = await reload(db, Comment, c1.id)
    assert fresh_c1.like_count == 0
    assert fresh_c1.replies_count == 1
    assert (await reload(db, Comment, r1.id)).replies_count == 0
    fresh_post = await reload(db, Post, post.id)
    assert fresh_post.comment_count == 2
    assert fresh_post.like_count == 1

    assert (await find_drift(db)).drift_count == 0


def test_beat_schedule_runs_reconciliation():
    entry = celery_app.conf.beat_schedule["reconcile-counters"]
    assert entry["task"] == "community.workers.reconcile.reconcile_counters_task"
    assert entry["schedule"] > 0


async def test_repair_counts_likes_committed_after_scan(session_maker, db, post, alice, bob, admin):
    c1, _ = await _thread(db, post, alice, bob)
    await db.execute(update(Comment).where(Comment.id == c1.id).values(like_count=0))
    await db.commit()
    report = await find_drift(db)
    await db.commit()

    async with session_maker() as other:
        await like_service.like_comment(other, admin.id, c1.id)

    await repair_drift(db, report.drifts)

    # stored=0 in the report, but the repair recounts both likes
    assert [d.actual for d in report.drifts] == [1]
    assert (await reload(db, Comment, c1.id)).like_count == 2


def test_worker_logging_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "LOG_LEVEL", "WARNING")
    try:
        responses = setup_logging.send(sender=None, loglevel=None, logfile=None, format=None, colorize=None)
        assert configure_worker_logging in [receiver for receiver, _ in responses]
        assert logging.getLogger().level == logging.WARNING
    finally:
        monkeypatch.undo()
        configure_logging(settings)
