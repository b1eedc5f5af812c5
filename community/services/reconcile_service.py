"""Periodic reconciliation of denormalized counters against their detail rows.

The write paths keep counters exact; this job is the safety net that finds and
repairs drift left behind by manual data fixes or out-of-band deletes.
"""
from dataclasses import dataclass, field

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from community.core.logging import get_logger
from community.db.session import unit_of_work
from community.models.comment import Comment
from community.models.engagement import CommentLike, PostLike
from community.models.post import Post

logger = get_logger(__name__)


@dataclass
class CounterDrift:
    table: str
    row_id: int
    field: str
    stored: int
    actual: int


@dataclass
class ReconcileReport:
    comments_checked: int = 0
    posts_checked: int = 0
    drifts: list[CounterDrift] = field(default_factory=list)
    fixed: bool = False

    @property
    def drift_count(self) -> int:
        return len(self.drifts)


def _true_comment_likes(comment_id):
    return (
        select(func.count())
        .select_from(CommentLike)
        .where(CommentLike.comment_id == comment_id)
        .scalar_subquery()
    )


def _true_replies(comment_id):
    Reply = Comment.__table__.alias("reply")
    return (
        select(func.count())
        .select_from(Reply)
        .where(Reply.c.parent_comment_id == comment_id)
        .scalar_subquery()
    )


def _true_post_likes(post_id):
    return select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id).scalar_subquery()


def _true_post_comments(post_id):
    return select(func.count()).select_from(Comment).where(Comment.post_id == post_id).scalar_subquery()


async def find_drift(db: AsyncSession) -> ReconcileReport:
    report = ReconcileReport()

    like_counts = dict(
        (await db.execute(select(CommentLike.comment_id, func.count()).group_by(CommentLike.comment_id))).all()
    )
    reply_counts = dict(
        (
            await db.execute(
                select(Comment.parent_comment_id, func.count())
                .where(Comment.parent_comment_id.is_not(None))
                .group_by(Comment.parent_comment_id)
            )
        ).all()
    )
    comments = await db.execute(
        select(Comment.id, Comment.parent_comment_id, Comment.like_count, Comment.replies_count)
    )
    for comment_id, parent_id, like_count, replies_count in comments.all():
        report.comments_checked += 1
        actual_likes = like_counts.get(comment_id, 0)
        if (like_count or 0) != actual_likes:
            report.drifts.append(CounterDrift("comments", comment_id, "like_count", like_count or 0, actual_likes))
        # replies_count only means something on top-level comments
        actual_replies = reply_counts.get(comment_id, 0) if parent_id is None else 0
        if (replies_count or 0) != actual_replies:
            report.drifts.append(
                CounterDrift("comments", comment_id, "replies_count", replies_count or 0, actual_replies)
            )

    post_likes = dict((await db.execute(select(PostLike.post_id, func.count()).group_by(PostLike.post_id))).all())
    post_comments = dict((await db.execute(select(Comment.post_id, func.count()).group_by(Comment.post_id))).all())
    posts = await db.execute(select(Post.id, Post.like_count, Post.comment_count))
    for post_id, like_count, comment_count in posts.all():
        report.posts_checked += 1
        actual_likes = post_likes.get(post_id, 0)
        if (like_count or 0) != actual_likes:
            report.drifts.append(CounterDrift("posts", post_id, "like_count", like_count or 0, actual_likes))
        actual_comments = post_comments.get(post_id, 0)
        if (comment_count or 0) != actual_comments:
            report.drifts.append(
                CounterDrift("posts", post_id, "comment_count", comment_count or 0, actual_comments)
            )
    return report


async def _fix(db: AsyncSession, drift: CounterDrift) -> None:
    model = Comment if drift.table == "comments" else Post
    # Take the row lock in its own statement first: writers that held it have
    # committed by now, so the recount below starts from a snapshot that sees them.
    await db.execute(select(model.id).where(model.id == drift.row_id).with_for_update())
    if model is Comment:
        if drift.field == "like_count":
            value = _true_comment_likes(drift.row_id)
        else:
            value = case((Comment.parent_comment_id.is_(None), _true_replies(drift.row_id)), else_=0)
    else:
        value = _true_post_likes(drift.row_id) if drift.field == "like_count" else _true_post_comments(drift.row_id)
    await db.execute(
        update(model)
        .where(model.id == drift.row_id)
        .values({drift.field: value})
        .execution_options(synchronize_session=False)
    )


async def repair_drift(db: AsyncSession, drifts: list[CounterDrift]) -> None:
    """Recount each drifted counter from its detail rows, in one unit of work."""
    async with unit_of_work(db, "reconcile_counters"):
        for drift in drifts:
            await _fix(db, drift)


async def reconcile_counters(db: AsyncSession, dry_run: bool = False) -> ReconcileReport:
    """Compare every counter with its detail rows and, unless ``dry_run``, repair drift."""
    report = await find_drift(db)
    for drift in report.drifts:
        logger.warning(
            "counter_drift_found",
            table=drift.table,
            row_id=drift.row_id,
            field=drift.field,
            stored=drift.stored,
            actual=drift.actual,
        )
    if dry_run or not report.drifts:
        return report

    await repair_drift(db, report.drifts)
    report.fixed = True
    logger.info("counter_drift_fixed", drifts=report.drift_count)
    return report
