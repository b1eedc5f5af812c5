from community.models.user import User
from community.models.post import Post
from community.models.comment import Comment, CommentKind
from community.models.engagement import CommentLike, PostLike

__all__ = ["User", "Post", "Comment", "CommentKind", "CommentLike", "PostLike"]
