"""Per-user notifications with a denormalized unread counter.

Every mutation that changes a notification's read state also moves the
recipient's ``unreadNotifications`` counter, and both writes go through one
batch so the counter matches the number of unread notifications.
"""
from __future__ import annotations

import logging
from typing import Any

from travel_threads.errors import NotFoundError
from travel_threads.schemas.notification import EntityType, Notification, NotificationType
from travel_threads.services.collections import NOTIFICATIONS, USERS
from travel_threads.services.context import ServiceContext
from travel_threads.store.base import Increment, Query, new_document_id

logger = logging.getLogger(__name__)

__all__ = [
    "create_notification",
    "notify",
    "get_user_notifications",
    "mark_notification_as_read",
    "mark_all_notifications_as_read",
    "delete_notification",
]


async def create_notification(
    ctx: ServiceContext,
    user_id: str,
    type: NotificationType,
    message: str,
    *,
    actor_id: str | None = None,
    entity_id: str | None = None,
    entity_type: EntityType | None = None,
    data: dict[str, Any] | None = None,
) -> str:
    """Create a notification for ``user_id`` and bump their unread counter.

    The actor's display name and photo are copied into the notification as
    they are right now.

    Args:
        ctx: Service context
        user_id: Recipient
        type: Notification type
        message: Human-readable message
        actor_id: User who triggered the notification, if any
        entity_id: Id of the related entity
        entity_type: Kind of the related entity
        data: Extra payload such as a text preview

    Returns:
        The id of the new notification

    Raises:
        NotFoundError: If the recipient has no profile document
    """
    if not (await ctx.store.get(USERS, user_id)).exists:
        raise NotFoundError(USERS, user_id)
    actor_name = None
    actor_photo_url = None
    if actor_id:
        actor = await ctx.store.get(USERS, actor_id)
        if actor.exists:
            actor_name = actor.get("displayName")
            actor_photo_url = actor.get("photoURL")

    notification_id = new_document_id()
    batch = ctx.store.batch()
    batch.set(
        NOTIFICATIONS,
        notification_id,
        {
            "userId": user_id,
            "type": type,
            "message": message,
            "data": data or {},
            "read": False,
            "createdAt": ctx.timestamp(),
            "actorId": actor_id,
            "actorName": actor_name,
            "actorPhotoURL": actor_photo_url,
            "entityId": entity_id,
            "entityType": entity_type,
        },
    )
    batch.update(USERS, user_id, {"unreadNotifications": Increment(1)})
    await batch.commit()
    logger.debug("Created %s notification %s for %s", type, notification_id, user_id)
    return notification_id


async def notify(
    ctx: ServiceContext,
    user_id: str,
    type: NotificationType,
    message: str,
    **kwargs: Any,
) -> str | None:
    """Create a notification as a side effect of another action.

    A recipient without a profile document is logged and skipped so that the
    primary action still succeeds; store failures propagate.
    """
    try:
        return await create_notification(ctx, user_id, type, message, **kwargs)
    except NotFoundError:
        logger.warning("Skipping %s notification: recipient %s has no profile", type, user_id)
        return None


async def get_user_notifications(
    ctx: ServiceContext,
    user_id: str,
    limit: int | None = None,
) -> list[Notification]:
    """Return the newest notifications for ``user_id``."""
    count = limit if limit is not None else ctx.settings.notifications_page_size
    query = (
        Query(NOTIFICATIONS)
        .where("userId", "==", user_id)
        .order_by("createdAt", descending=True)
        .limit_to(count)
    )
    return [Notification.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def mark_notification_as_read(ctx: ServiceContext, notification_id: str) -> bool:
    """Mark one notification as read.

    Returns:
        False if the notification does not exist, True otherwise. Marking an
        already-read notification changes nothing.
    """
    snapshot = await ctx.store.get(NOTIFICATIONS, notification_id)
    if not snapshot.exists:
        return False
    if not snapshot.get("read"):
        batch = ctx.store.batch()
        batch.update(NOTIFICATIONS, notification_id, {"read": True})
        batch.update(USERS, snapshot.get("userId"), {"unreadNotifications": Increment(-1)})
        await batch.commit()
    return True


async def mark_all_notifications_as_read(ctx: ServiceContext, user_id: str) -> int:
    """Mark every unread notification of ``user_id`` as read and zero the counter.

    Returns:
        The number of notifications that changed state
    """
    query = Query(NOTIFICATIONS).where("userId", "==", user_id).where("read", "==", False)
    unread = await ctx.store.query(query)
    if not unread:
        return 0
    batch = ctx.store.batch()
    for snapshot in unread:
        batch.update(NOTIFICATIONS, snapshot.id, {"read": True})
    batch.update(USERS, user_id, {"unreadNotifications": 0})
    await batch.commit()
    return len(unread)


async def delete_notification(ctx: ServiceContext, notification_id: str) -> bool:
    """Delete a notification, decrementing the counter if it was still unread."""
    snapshot = await ctx.store.get(NOTIFICATIONS, notification_id)
    if not snapshot.exists:
        return False
    batch = ctx.store.batch()
    if not snapshot.get("read"):
        batch.update(USERS, snapshot.get("userId"), {"unreadNotifications": Increment(-1)})
    batch.delete(NOTIFICATIONS, notification_id)
    await batch.commit()
    return True
