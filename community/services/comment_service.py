"""Comment tree business logic.

Threads are two levels deep: top-level comments hang off a post, replies hang off
a top-level comment. ``Comment.replies_count`` and ``Post.comment_count`` are
denormalized and only ever changed by SQL-side increments inside the same unit of
work as the row insert/delete that justifies them.

Lock order is always parent comment before reply, so reply creation, reply
deletion and cascading deletion of the parent serialize on the parent row.
"""
from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from community.core.config import settings
from community.core.exceptions import InvalidInputError, NotFoundError
from community.core.logging import get_logger
from community.core.pagination import paginate, validate_page_params
from community.db.session import unit_of_work
from community.models.comment import Comment
from community.models.engagement import CommentLike
from community.models.post import Post
from community.schemas.comment import CommentResponse
from community.schemas.pagination import Page
from community.schemas.user import UserPublic
from community.services.auth_service import ensure_owner_or_admin, get_active_user
from community.services.counters import adjust_counter
from community.services.like_service import get_user_liked_comment_ids

logger = get_logger(__name__)


def clean_contents(contents: str | None) -> str:
    if contents is None or not contents.strip():
        raise InvalidInputError("Comment contents must not be empty", "empty_contents")
    return contents


def comment_to_response(comment: Comment, is_liked: bool = False) -> CommentResponse:
    user = comment.user
    user_public = UserPublic(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
    ) if user else None
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        parent_comment_id=comment.parent_comment_id,
        user_id=comment.user_id,
        user=user_public,
        contents=comment.contents,
        created_at=comment.created_at,
        like_count=comment.like_count or 0,
        replies_count=comment.replies_count or 0,
        is_liked=is_liked,
    )


def _ordering():
    if settings.COMMENT_ORDER == "desc":
        return (desc(Comment.created_at), desc(Comment.id))
    return (Comment.created_at, Comment.id)


async def get_post_or_404(db: AsyncSession, post_id: int) -> Post:
    result = await db.execute(select(Post).where(Post.id == post_id))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found", "post_not_found")
    return post


async def get_comment_or_404(
    db: AsyncSession,
    comment_id: int,
    *,
    lock: bool = False,
    message: str = "Comment not found",
) -> Comment:
    q = select(Comment).where(Comment.id == comment_id).options(selectinload(Comment.user))
    if lock:
        q = q.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(q)
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFoundError(message, "comment_not_found")
    return comment


async def get_comment(db: AsyncSession, comment_id: int) -> Comment:
    return await get_comment_or_404(db, comment_id)


async def create_top_level_comment(db: AsyncSession, post_id: int, author_id: int, contents: str) -> Comment:
    contents = clean_contents(contents)
    async with unit_of_work(db, "create_comment"):
        author = await get_active_user(db, author_id)
        await get_post_or_404(db, post_id)
        comment = Comment.top_level(post_id=post_id, user_id=author.id, contents=contents)
        comment.user = author
        db.add(comment)
        await db.flush()
        await adjust_counter(db, Post, post_id, "comment_count", 1)
    logger.info("comment_created", comment_id=comment.id, post_id=post_id, user_id=author.id)
    return comment


async def create_reply(db: AsyncSession, parent_comment_id: int, author_id: int, contents: str) -> Comment:
    """Insert a reply and bump the parent's ``replies_count`` as one unit."""
    contents = clean_contents(contents)
    async with unit_of_work(db, "create_reply"):
        author = await get_active_user(db, author_id)
        parent = await get_comment_or_404(db, parent_comment_id, lock=True, message="Parent comment not found")
        reply = Comment.reply_to(parent, user_id=author.id, contents=contents)
        reply.user = author
        db.add(reply)
        await db.flush()
        await adjust_counter(db, Comment, parent.id, "replies_count", 1)
        await adjust_counter(db, Post, parent.post_id, "comment_count", 1)
    logger.info("reply_created", comment_id=reply.id, parent_comment_id=parent.id, user_id=author.id)
    return reply


async def update_comment(db: AsyncSession, comment_id: int, caller_id: int, contents: str) -> Comment:
    contents = clean_contents(contents)
    async with unit_of_work(db, "update_comment"):
        caller = await get_active_user(db, caller_id)
        comment = await get_comment_or_404(db, comment_id, lock=True)
        ensure_owner_or_admin(caller, comment.user_id)
        comment.contents = contents
        await db.flush()
    logger.info("comment_updated", comment_id=comment.id, user_id=caller.id)
    return comment


async def delete_comment(db: AsyncSession, comment_id: int, caller_id: int) -> int:
    """Delete a comment and everything hanging off it.

    Returns how many replies went with it: the reply count for a top-level
    comment, 0 when the target is itself a reply.
    """
    async with unit_of_work(db, "delete_comment"):
        caller = await get_active_user(db, caller_id)
        target = await get_comment_or_404(db, comment_id)
        ensure_owner_or_admin(caller, target.user_id)
        post_id = target.post_id

        if target.is_reply:
            parent_id = target.parent_comment_id
            # Parent first, then the reply itself
            await db.execute(select(Comment.id).where(Comment.id == parent_id).with_for_update())
            target = await get_comment_or_404(db, comment_id, lock=True)
            await db.execute(delete(CommentLike).where(CommentLike.comment_id == target.id))
            await db.execute(delete(Comment).where(Comment.id == target.id))
            await adjust_counter(db, Comment, parent_id, "replies_count", -1)
            deleted_replies = 0
        else:
            target = await get_comment_or_404(db, comment_id, lock=True)
            result = await db.execute(
                select(Comment.id).where(Comment.parent_comment_id == target.id).with_for_update()
            )
            reply_ids = list(result.scalars().all())
            doomed = [target.id, *reply_ids]
            await db.execute(delete(CommentLike).where(CommentLike.comment_id.in_(doomed)))
            if reply_ids:
                await db.execute(delete(Comment).where(Comment.id.in_(reply_ids)))
            await db.execute(delete(Comment).where(Comment.id == target.id))
            deleted_replies = len(reply_ids)

        await adjust_counter(db, Post, post_id, "comment_count", -(deleted_replies + 1))
    logger.info(
        "comment_deleted",
        comment_id=comment_id,
        user_id=caller.id,
        deleted_replies=deleted_replies,
    )
    return deleted_replies


async def _list_comments(
    db: AsyncSession,
    criteria,
    page: int,
    size: int,
    viewer_id: int | None,
) -> Page:
    total = await db.scalar(select(func.count(Comment.id)).where(*criteria)) or 0
    liked: set[int] = set()

    async def fetch_rows(offset: int, limit: int) -> list[Comment]:
        result = await db.execute(
            select(Comment)
            .where(*criteria)
            .order_by(*_ordering())
            .offset(offset)
            .limit(limit)
            .options(selectinload(Comment.user))
            # Counters move via SQL expressions; don't serve them from the identity map
            .execution_options(populate_existing=True)
        )
        rows = list(result.scalars().all())
        if viewer_id is not None:
            liked.update(await get_user_liked_comment_ids(db, viewer_id, [c.id for c in rows]))
        return rows

    return await paginate(total, page, size, fetch_rows, lambda c: comment_to_response(c, is_liked=c.id in liked))


async def list_top_level_comments(
    db: AsyncSession,
    post_id: int,
    page: int = 0,
    size: int | None = None,
    viewer_id: int | None = None,
) -> Page:
    size = settings.DEFAULT_PAGE_SIZE if size is None else size
    validate_page_params(page, size)
    await get_post_or_404(db, post_id)
    criteria = (Comment.post_id == post_id, Comment.parent_comment_id.is_(None))
    return await _list_comments(db, criteria, page, size, viewer_id)


async def list_replies(
    db: AsyncSession,
    parent_comment_id: int,
    page: int = 0,
    size: int | None = None,
    viewer_id: int | None = None,
) -> Page:
    size = settings.DEFAULT_PAGE_SIZE if size is None else size
    validate_page_params(page, size)
    await get_comment_or_404(db, parent_comment_id, message="Parent comment not found")
    criteria = (Comment.parent_comment_id == parent_comment_id,)
    return await _list_comments(db, criteria, page, size, viewer_id)
