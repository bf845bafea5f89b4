"""Feed page schema."""
from __future__ import annotations

from typing import Literal

from pydantic import Field

from .common import CamelModel
from .post import Post

FeedSort = Literal["recent", "popular", "trending"]


class FeedPage(CamelModel):
    """One slice of a ranked, fully fetched post list."""

    items: list[Post] = Field(default_factory=list)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    has_more: bool
