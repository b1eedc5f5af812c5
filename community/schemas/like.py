"""Pydantic schemas for like/unlike responses."""
from pydantic import BaseModel


class LikeStatus(BaseModel):
    target_id: int
    like_count: int
    is_liked: bool
    message: str
