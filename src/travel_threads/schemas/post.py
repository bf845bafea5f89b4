"""Post, comment and share schemas."""
from __future__ import annotations

from pydantic import Field

from .common import CamelModel, GeoPoint, Location, PartialUpdate, Record, Timestamp


class Post(Record):
    """A post document with its denormalized engagement counters."""

    title: str = ""
    content: str = ""
    author_id: str
    image_url: str | None = None
    location: Location | None = None
    geopoint: GeoPoint | None = None
    location_keywords: list[str] | None = None
    likes: int = 0
    liked_by: list[str] = Field(default_factory=list)
    comment_count: int = 0
    share_count: int = 0
    created_at: Timestamp

    @property
    def engagement(self) -> int:
        """Likes, comments and shares combined."""
        return self.likes + self.comment_count + self.share_count


class PostCreate(CamelModel):
    """Schema for creating a new post.

    ``author_id`` is filled in from the authenticated user by the API layer.
    """

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field("", max_length=10000)
    author_id: str | None = None
    image_url: str | None = None
    location: Location | None = None


class PostUpdate(PartialUpdate):
    """Partial post update; unset fields are left untouched.

    ``imageUrl`` and ``location`` may be cleared with null.
    """

    nullable_fields = frozenset({"image_url", "location"})

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, max_length=10000)
    image_url: str | None = None
    location: Location | None = None


class Comment(Record):
    """A comment; ``parent_id`` is None for top-level comments."""

    post_id: str
    author_id: str
    content: str = ""
    parent_id: str | None = None
    likes: int = 0
    liked_by: list[str] = Field(default_factory=list)
    created_at: Timestamp


class CommentCreate(CamelModel):
    """Schema for adding a comment or a reply."""

    post_id: str | None = None
    author_id: str | None = None
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: str | None = None


class Share(Record):
    """An append-only record of a post being shared."""

    post_id: str
    author_id: str
    caption: str | None = None
    created_at: Timestamp


class ShareCreate(CamelModel):
    """Schema for sharing a post."""

    post_id: str | None = None
    author_id: str | None = None
    caption: str | None = Field(None, max_length=500)


class LikeState(CamelModel):
    """Outcome of a like or unlike: the counter and whether the user now likes it."""

    entity_id: str
    likes: int
    liked: bool
