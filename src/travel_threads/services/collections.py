"""Collection names used in the document store."""

from typing import Final

USERS: Final = "users"
POSTS: Final = "posts"
COMMENTS: Final = "comments"
SHARES: Final = "shares"
EVENTS: Final = "events"
CONVERSATIONS: Final = "conversations"
MESSAGES: Final = "messages"
NOTIFICATIONS: Final = "notifications"
REPORTS: Final = "reports"
ADMIN_LOGS: Final = "adminLogs"
CREDENTIALS: Final = "credentials"
