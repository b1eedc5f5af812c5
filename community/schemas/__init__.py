from community.schemas.user import UserPublic, CallerIdentity
from community.schemas.comment import CommentCreate, CommentUpdate, CommentResponse, CommentDeleteResponse
from community.schemas.pagination import Page, PageInfo
from community.schemas.like import LikeStatus
