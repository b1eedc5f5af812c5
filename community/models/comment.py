"""Comment model: a top-level comment on a post or a reply to one.

Threads are exactly two levels deep. A comment with no parent is top-level and
carries ``replies_count``; a comment with a parent is a reply and may never be
a parent itself.
"""
import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from community.core.exceptions import InvalidStateError
from community.db.session import Base


class CommentKind(str, enum.Enum):
    TOP_LEVEL = "top_level"
    REPLY = "reply"


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint("like_count >= 0", name="ck_comments_like_count_non_negative"),
        CheckConstraint("replies_count >= 0", name="ck_comments_replies_count_non_negative"),
        Index("ix_comments_post_parent_created", "post_id", "parent_comment_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    # Lookup only: deleting a reply never touches its parent
    parent_comment_id = Column(Integer, ForeignKey("comments.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    contents = Column(Text, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    replies_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="comments")
    post = relationship("Post", back_populates="comments")
    likes = relationship("CommentLike", back_populates="comment", passive_deletes=True)

    @property
    def kind(self) -> CommentKind:
        return CommentKind.TOP_LEVEL if self.parent_comment_id is None else CommentKind.REPLY

    @property
    def is_reply(self) -> bool:
        return self.kind is CommentKind.REPLY

    @classmethod
    def top_level(cls, *, post_id: int, user_id: int, contents: str) -> "Comment":
        return cls(
            post_id=post_id,
            parent_comment_id=None,
            user_id=user_id,
            contents=contents,
            like_count=0,
            replies_count=0,
            created_at=datetime.utcnow(),
        )

    @classmethod
    def reply_to(cls, parent: "Comment", *, user_id: int, contents: str) -> "Comment":
        """Build a reply under ``parent``; replies to replies are rejected."""
        if parent.is_reply:
            raise InvalidStateError("Nesting depth exceeded: cannot reply to a reply", "nesting_depth_exceeded")
        return cls(
            post_id=parent.post_id,
            parent_comment_id=parent.id,
            user_id=user_id,
            contents=contents,
            like_count=0,
            replies_count=0,
            created_at=datetime.utcnow(),
        )
