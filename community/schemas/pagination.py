"""Page envelope shared by every listing endpoint."""
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageInfo(BaseModel):
    current_page: int
    current_size: int
    total_pages: int
    total_size: int


class Page(BaseModel, Generic[T]):
    page_info: PageInfo
    items: list[T]
