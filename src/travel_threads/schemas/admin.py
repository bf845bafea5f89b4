"""Moderation schemas: reports, audit log entries and dashboard stats."""
from __future__ import annotations

from typing import Literal

from pydantic import Field

from .common import CamelModel, Record, Timestamp
from .notification import EntityType

ReportStatus = Literal["pending", "reviewed", "resolved", "dismissed"]
RemovableEntityType = Literal["post", "comment", "event"]


class Report(Record):
    """A user-submitted report waiting for (or after) moderator review."""

    reporter_id: str
    entity_id: str
    entity_type: EntityType
    reason: str
    description: str | None = None
    status: ReportStatus = "pending"
    created_at: Timestamp
    reviewed_at: Timestamp | None = None
    reviewed_by: str | None = None
    action: str | None = None


class ReportCreate(CamelModel):
    """Schema for filing a report."""

    reporter_id: str | None = None
    entity_id: str = Field(..., min_length=1)
    entity_type: EntityType
    reason: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)


class ReportReview(CamelModel):
    """Request body for moving a report forward."""

    status: ReportStatus
    action: str | None = None


class BlockRequest(CamelModel):
    """Request body for blocking a user."""

    reason: str = Field(..., min_length=1, max_length=500)


class ContentRemoval(CamelModel):
    """Request body for removing a post, comment or event."""

    entity_id: str = Field(..., min_length=1)
    entity_type: RemovableEntityType
    reason: str = Field(..., min_length=1, max_length=500)


class AdminLog(Record):
    """Append-only audit entry for a moderator action."""

    action: str
    admin_id: str
    user_id: str | None = None
    entity_id: str | None = None
    entity_type: str | None = None
    report_id: str | None = None
    status: str | None = None
    reason: str | None = None
    timestamp: Timestamp


class AdminStats(CamelModel):
    """Counts shown on the moderation dashboard."""

    total_users: int
    blocked_users: int
    total_posts: int
    total_events: int
    pending_reports: int
