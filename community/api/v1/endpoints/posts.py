"""Post likes (the content-like flow; self-likes governed by settings)."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.deps import get_current_user, get_db
from community.models.user import User
from community.schemas.like import LikeStatus
from community.services import like_service

router = APIRouter(prefix="/community/posts", tags=["posts"])


@router.post("/likes/{post_id}", response_model=LikeStatus)
async def like_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await like_service.like_post(db, current_user.id, post_id)
    return LikeStatus(target_id=post.id, like_count=post.like_count, is_liked=True, message="Liked")


@router.delete("/likes/{post_id}", response_model=LikeStatus)
async def unlike_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await like_service.unlike_post(db, current_user.id, post_id)
    return LikeStatus(target_id=post.id, like_count=post.like_count, is_liked=False, message="Like removed")
