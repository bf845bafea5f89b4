"""User profile schemas."""
from __future__ import annotations

from pydantic import Field

from .common import CamelModel, PartialUpdate, Record, Timestamp

DEFAULT_DISPLAY_NAME = "New User"


class UserProfile(Record):
    """A user document from the ``users`` collection."""

    display_name: str = ""
    bio: str = ""
    photo_url: str = Field(default="", alias="photoURL")
    email: str = ""
    created_at: Timestamp | None = None
    followers: list[str] = Field(default_factory=list)
    following: list[str] = Field(default_factory=list)
    thread_count: int = 0
    unread_notifications: int = 0
    report_count: int = 0
    is_admin: bool = False
    is_blocked: bool = False
    block_reason: str | None = None
    blocked_at: Timestamp | None = None
    blocked_by: str | None = None


class ProfileCreate(CamelModel):
    """Fields accepted when a profile is created explicitly."""

    display_name: str = Field(DEFAULT_DISPLAY_NAME, min_length=1, max_length=100)
    bio: str = Field("", max_length=500)
    photo_url: str = Field(default="", alias="photoURL")
    email: str = ""


class ProfileUpdate(PartialUpdate):
    """Partial profile update; only fields that are set are written, never as null."""

    display_name: str | None = Field(None, min_length=1, max_length=100)
    bio: str | None = Field(None, max_length=500)
    photo_url: str | None = Field(default=None, alias="photoURL")


class FollowState(CamelModel):
    """Outcome of a follow or unfollow."""

    user_id: str
    target_id: str
    following: bool
    follower_count: int
