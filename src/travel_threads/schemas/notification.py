"""Notification schemas."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from .common import Record, Timestamp

NotificationType = Literal[
    "post_like",
    "post_comment",
    "comment_reply",
    "new_follower",
    "event_invite",
    "event_reminder",
    "event_update",
    "event_attendance",
    "message_received",
    "account_blocked",
    "account_unblocked",
    "admin_role_granted",
    "admin_role_removed",
    "content_removed",
    "mention",
]

EntityType = Literal["post", "comment", "event", "user", "message"]


class Notification(Record):
    """A notification addressed to ``user_id``.

    Actor name and photo are captured when the notification is created and
    are not refreshed if the actor later edits their profile.
    """

    user_id: str
    type: NotificationType
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: Timestamp
    actor_id: str | None = None
    actor_name: str | None = None
    actor_photo_url: str | None = Field(default=None, alias="actorPhotoURL")
    entity_id: str | None = None
    entity_type: EntityType | None = None
