# src/travel_threads/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    auth_router,
    events_router,
    feed_router,
    media_router,
    messages_router,
    notifications_router,
    posts_router,
    search_router,
    users_router,
)

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
