# src/travel_threads/api/v1/endpoints/notifications.py
"""Notification inbox endpoints."""

from fastapi import APIRouter, HTTPException, Query, status

from travel_threads.api.v1.dependencies import ContextDep, CurrentUserDep
from travel_threads.schemas.notification import Notification
from travel_threads.services import notifications
from travel_threads.services.collections import NOTIFICATIONS
from travel_threads.services.context import ServiceContext

router = APIRouter(prefix="/notifications", tags=["notifications"])


async def _check_recipient(ctx: ServiceContext, notification_id: str, user_id: str) -> None:
    snapshot = await ctx.store.get(NOTIFICATIONS, notification_id)
    if not snapshot.exists or snapshot.get("userId") != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )


@router.get("/", response_model=list[Notification])
async def list_notifications(
    current_user: CurrentUserDep,
    ctx: ContextDep,
    limit: int | None = Query(None, ge=1, le=100),
) -> list[Notification]:
    """Return the caller's newest notifications."""
    return await notifications.get_user_notifications(ctx, current_user.id, limit)


@router.get("/unread-count")
async def unread_count(current_user: CurrentUserDep) -> dict[str, int]:
    """Return the caller's unread notification counter."""
    return {"unread": current_user.unread_notifications}


@router.post("/read-all")
async def read_all(current_user: CurrentUserDep, ctx: ContextDep) -> dict[str, int]:
    """Mark all of the caller's notifications as read."""
    updated = await notifications.mark_all_notifications_as_read(ctx, current_user.id)
    return {"updated": updated}


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    notification_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> None:
    """Mark one notification as read."""
    await _check_recipient(ctx, notification_id, current_user.id)
    await notifications.mark_notification_as_read(ctx, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> None:
    """Delete one notification."""
    await _check_recipient(ctx, notification_id, current_user.id)
    await notifications.delete_notification(ctx, notification_id)
