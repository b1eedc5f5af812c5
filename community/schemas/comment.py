"""Pydantic schemas for Comment and reply threads."""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from community.schemas.user import UserPublic


class CommentCreate(BaseModel):
    contents: str = Field(..., min_length=1)

    @field_validator("contents")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("contents must not be blank")
        return v


class CommentUpdate(CommentCreate):
    pass


class CommentResponse(BaseModel):
    id: int
    post_id: int
    parent_comment_id: int | None = None
    user_id: int
    user: UserPublic | None = None
    contents: str
    created_at: datetime
    like_count: int = 0
    replies_count: int = 0
    is_liked: bool = False

    model_config = {"from_attributes": True}


class CommentDeleteResponse(BaseModel):
    deleted_count: int
    message: str
