# src/travel_threads/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .auth import router as auth_router
from .events import router as events_router
from .feed import router as feed_router
from .media import router as media_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .search import router as search_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "posts_router",
    "feed_router",
    "users_router",
    "events_router",
    "messages_router",
    "notifications_router",
    "admin_router",
    "search_router",
    "media_router",
]
