"""Comment threads: top-level comments, replies, and comment likes."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.deps import get_current_user, get_current_user_optional, get_db
from community.core.config import settings
from community.models.user import User
from community.schemas.comment import CommentCreate, CommentDeleteResponse, CommentResponse, CommentUpdate
from community.schemas.like import LikeStatus
from community.schemas.pagination import Page
from community.services import comment_service, like_service
from community.services.comment_service import comment_to_response

router = APIRouter(prefix="/community", tags=["comments"])


@router.get("/comments/{post_id}", response_model=Page[CommentResponse])
async def list_comments(
    post_id: int,
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_top_level_comments(
        db, post_id, page, size, viewer_id=current_user.id if current_user else None
    )


@router.get("/replies/{comment_id}", response_model=Page[CommentResponse])
async def list_replies(
    comment_id: int,
    page: int = Query(0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE),
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.list_replies(
        db, comment_id, page, size, viewer_id=current_user.id if current_user else None
    )


@router.post("/comments/{post_id}", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def write_comment(
    post_id: int,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.create_top_level_comment(db, post_id, current_user.id, data.contents)
    return comment_to_response(comment)


@router.post("/replies/{comment_id}", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def write_reply(
    comment_id: int,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reply = await comment_service.create_reply(db, comment_id, current_user.id, data.contents)
    return comment_to_response(reply)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.update_comment(db, comment_id, current_user.id, data.contents)
    is_liked = await like_service.has_liked_comment(db, current_user.id, comment.id)
    return comment_to_response(comment, is_liked=is_liked)


@router.delete("/comments/{comment_id}", response_model=CommentDeleteResponse)
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted_count = await comment_service.delete_comment(db, comment_id, current_user.id)
    if deleted_count == 0:
        message = "Comment deleted"
    else:
        message = f"Comment and {deleted_count} replies deleted"
    return CommentDeleteResponse(deleted_count=deleted_count, message=message)


@router.post("/comments/likes/{comment_id}", response_model=LikeStatus)
async def like_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await like_service.like_comment(db, current_user.id, comment_id)
    return LikeStatus(target_id=comment.id, like_count=comment.like_count, is_liked=True, message="Liked")


@router.delete("/comments/likes/{comment_id}", response_model=LikeStatus)
async def unlike_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await like_service.unlike_comment(db, current_user.id, comment_id)
    return LikeStatus(target_id=comment.id, like_count=comment.like_count, is_liked=False, message="Like removed")
