"""SQLAlchemy declarative base and model imports for Alembic."""
from community.db.session import Base  # noqa: F401
from community.models.user import User  # noqa: F401
from community.models.post import Post  # noqa: F401
from community.models.comment import Comment  # noqa: F401
from community.models.engagement import CommentLike, PostLike  # noqa: F401

__all__ = ["Base", "User", "Post", "Comment", "CommentLike", "PostLike"]
