# src/travel_threads/schemas/__init__.py
"""
Pydantic schemas for stored records and API request/response models.

Records are validated from camelCase documents and expose snake_case
attributes; the same aliases are used on the wire.
"""

from .admin import (
    AdminLog,
    AdminStats,
    BlockRequest,
    ContentRemoval,
    Report,
    ReportCreate,
    ReportReview,
    ReportStatus,
)
from .auth import Session, SignInRequest, SignUpRequest
from .common import CamelModel, GeoPoint, Location, Record, Timestamp
from .event import Event, EventCategory, EventCreate, EventFilter, EventUpdate
from .feed import FeedPage, FeedSort
from .messaging import (
    Conversation,
    ConversationCreate,
    LastMessage,
    Message,
    MessageCreate,
    ReactionCreate,
)
from .notification import EntityType, Notification, NotificationType
from .post import (
    Comment,
    CommentCreate,
    LikeState,
    Post,
    PostCreate,
    PostUpdate,
    Share,
    ShareCreate,
)
from .user import FollowState, ProfileCreate, ProfileUpdate, UserProfile

__all__ = [
    "AdminLog", "AdminStats", "BlockRequest", "ContentRemoval",
    "Report", "ReportCreate", "ReportReview", "ReportStatus",
    "Session", "SignInRequest", "SignUpRequest",
    "CamelModel", "GeoPoint", "Location", "Record", "Timestamp",
    "Event", "EventCategory", "EventCreate", "EventFilter", "EventUpdate",
    "FeedPage", "FeedSort",
    "Conversation", "ConversationCreate", "LastMessage", "Message",
    "MessageCreate", "ReactionCreate",
    "EntityType", "Notification", "NotificationType",
    "Comment", "CommentCreate", "LikeState", "Post", "PostCreate", "PostUpdate",
    "Share", "ShareCreate",
    "FollowState", "ProfileCreate", "ProfileUpdate", "UserProfile",
]
