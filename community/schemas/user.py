"""Pydantic schemas for User."""
from pydantic import BaseModel


class UserPublic(BaseModel):
    id: int
    username: str
    display_name: str | None = None
    avatar_url: str | None = None

    model_config = {"from_attributes": True}


class CallerIdentity(BaseModel):
    """What the identity gate knows about the caller behind a token."""

    user_id: int
    email: str
    is_admin: bool = False
    is_restricted: bool = False
