"""Like ledger for comments and posts.

A like is one row keyed by (user, target). Inserting or deleting that row and
moving the target's ``like_count`` happen in one unit of work, with the target
row locked, so the counter always equals the number of like rows.
"""
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from community.core.config import settings
from community.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from community.core.logging import get_logger
from community.db.session import unit_of_work
from community.models.comment import Comment
from community.models.engagement import CommentLike, PostLike
from community.models.post import Post
from community.services.auth_service import get_active_user
from community.services.counters import adjust_counter

logger = get_logger(__name__)


async def _lock_comment(db: AsyncSession, comment_id: int) -> Comment:
    result = await db.execute(
        select(Comment)
        .where(Comment.id == comment_id)
        .options(selectinload(Comment.user))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFoundError("Comment not found", "comment_not_found")
    return comment


async def _lock_post(db: AsyncSession, post_id: int) -> Post:
    result = await db.execute(
        select(Post).where(Post.id == post_id).with_for_update().execution_options(populate_existing=True)
    )
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found", "post_not_found")
    return post


async def has_liked_comment(db: AsyncSession, user_id: int, comment_id: int) -> bool:
    result = await db.execute(
        select(CommentLike.comment_id).where(
            CommentLike.user_id == user_id,
            CommentLike.comment_id == comment_id,
        )
    )
    return result.first() is not None


async def has_liked_post(db: AsyncSession, user_id: int, post_id: int) -> bool:
    result = await db.execute(
        select(PostLike.post_id).where(PostLike.user_id == user_id, PostLike.post_id == post_id)
    )
    return result.first() is not None


async def get_user_liked_comment_ids(db: AsyncSession, user_id: int, comment_ids: list[int]) -> set[int]:
    """Return the subset of ``comment_ids`` the user has liked."""
    if not comment_ids:
        return set()
    result = await db.execute(
        select(CommentLike.comment_id).where(
            CommentLike.user_id == user_id,
            CommentLike.comment_id.in_(comment_ids),
        )
    )
    return {row[0] for row in result.all()}


async def like_comment(db: AsyncSession, user_id: int, comment_id: int) -> Comment:
    async with unit_of_work(db, "like_comment"):
        user = await get_active_user(db, user_id)
        comment = await _lock_comment(db, comment_id)
        if not settings.ALLOW_SELF_LIKE_COMMENTS and comment.user_id == user.id:
            raise ForbiddenError("You cannot like your own comment", "self_like")
        if await has_liked_comment(db, user.id, comment.id):
            raise ConflictError("Comment already liked", "already_liked")
        db.add(CommentLike(user_id=user.id, comment_id=comment.id))
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("Comment already liked", "already_liked") from exc
        await adjust_counter(db, Comment, comment.id, "like_count", 1)
    await db.refresh(comment, attribute_names=["like_count"])
    logger.info("comment_liked", comment_id=comment.id, user_id=user.id, like_count=comment.like_count)
    return comment


async def unlike_comment(db: AsyncSession, user_id: int, comment_id: int) -> Comment:
    async with unit_of_work(db, "unlike_comment"):
        user = await get_active_user(db, user_id)
        comment = await _lock_comment(db, comment_id)
        result = await db.execute(
            delete(CommentLike)
            .where(CommentLike.user_id == user.id, CommentLike.comment_id == comment.id)
        )
        if not result.rowcount:
            raise NotFoundError("Comment not liked", "not_liked")
        await adjust_counter(db, Comment, comment.id, "like_count", -1)
    await db.refresh(comment, attribute_names=["like_count"])
    logger.info("comment_unliked", comment_id=comment.id, user_id=user.id, like_count=comment.like_count)
    return comment


async def like_post(db: AsyncSession, user_id: int, post_id: int) -> Post:
    async with unit_of_work(db, "like_post"):
        user = await get_active_user(db, user_id)
        post = await _lock_post(db, post_id)
        if not settings.ALLOW_SELF_LIKE_POSTS and post.user_id == user.id:
            raise ForbiddenError("You cannot like your own post", "self_like")
        if await has_liked_post(db, user.id, post.id):
            raise ConflictError("Post already liked", "already_liked")
        db.add(PostLike(user_id=user.id, post_id=post.id))
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("Post already liked", "already_liked") from exc
        await adjust_counter(db, Post, post.id, "like_count", 1)
    await db.refresh(post, attribute_names=["like_count"])
    logger.info("post_liked", post_id=post.id, user_id=user.id, like_count=post.like_count)
    return post


async def unlike_post(db: AsyncSession, user_id: int, post_id: int) -> Post:
    async with unit_of_work(db, "unlike_post"):
        user = await get_active_user(db, user_id)
        post = await _lock_post(db, post_id)
        result = await db.execute(
            delete(PostLike)
            .where(PostLike.user_id == user.id, PostLike.post_id == post.id)
        )
        if not result.rowcount:
            raise NotFoundError("Post not liked", "not_liked")
        await adjust_counter(db, Post, post.id, "like_count", -1)
    await db.refresh(post, attribute_names=["like_count"])
    logger.info("post_unliked", post_id=post.id, user_id=user.id, like_count=post.like_count)
    return post
