"""V1 API router aggregation."""
from fastapi import APIRouter

from community.api.v1.endpoints import comments, posts

api_router = APIRouter(prefix="/v1")
api_router.include_router(comments.router)
api_router.include_router(posts.router)
