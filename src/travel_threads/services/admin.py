"""Moderation: account actions, reports, content removal and the audit log.

Every moderator action writes an ``adminLogs`` entry in the same batch as the
change it records, then notifies the affected user.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from travel_threads.errors import InvalidTransitionError, NotFoundError
from travel_threads.schemas.admin import (
    AdminLog,
    AdminStats,
    RemovableEntityType,
    Report,
    ReportCreate,
    ReportStatus,
)
from travel_threads.schemas.user import UserProfile
from travel_threads.services.collections import (
    ADMIN_LOGS,
    COMMENTS,
    EVENTS,
    NOTIFICATIONS,
    POSTS,
    REPORTS,
    SHARES,
    USERS,
)
from travel_threads.services.content import delete_comment, delete_post
from travel_threads.services.context import ServiceContext
from travel_threads.services.events import delete_event
from travel_threads.services.notifications import notify
from travel_threads.store.base import (
    ArrayRemove,
    DocumentSnapshot,
    Increment,
    Query,
    WriteBatch,
    new_document_id,
)

logger = logging.getLogger(__name__)

__all__ = [
    "get_users",
    "block_user",
    "unblock_user",
    "delete_user_account",
    "grant_admin_privileges",
    "revoke_admin_privileges",
    "create_report",
    "get_reports",
    "review_report",
    "delete_content",
    "get_admin_logs",
    "get_admin_stats",
]

_STATUS_RANK: dict[str, int] = {
    "pending": 0,
    "reviewed": 1,
    "resolved": 2,
    "dismissed": 2,
}

_CONTENT_COLLECTIONS: dict[str, str] = {
    "post": POSTS,
    "comment": COMMENTS,
    "event": EVENTS,
}


def _log_action(
    ctx: ServiceContext,
    batch: WriteBatch,
    action: str,
    admin_id: str,
    **fields: Any,
) -> str:
    log_id = new_document_id()
    entry = {"action": action, "adminId": admin_id, "timestamp": ctx.timestamp()}
    entry.update({key: value for key, value in fields.items() if value is not None})
    batch.set(ADMIN_LOGS, log_id, entry)
    return log_id


async def _require_user(ctx: ServiceContext, user_id: str) -> DocumentSnapshot:
    snapshot = await ctx.store.get(USERS, user_id)
    if not snapshot.exists:
        raise NotFoundError(USERS, user_id)
    return snapshot


async def get_users(ctx: ServiceContext, limit: int | None = None) -> list[UserProfile]:
    """Return up to ``limit`` user profiles in store order."""
    count = limit if limit is not None else ctx.settings.admin_users_page_size
    snapshots = await ctx.store.query(Query(USERS).limit_to(count))
    return [UserProfile.from_snapshot(snapshot) for snapshot in snapshots]


async def block_user(ctx: ServiceContext, user_id: str, admin_id: str, reason: str) -> None:
    """Block an account and tell its owner why.

    Raises:
        NotFoundError: If the user does not exist
    """
    await _require_user(ctx, user_id)
    batch = ctx.store.batch()
    batch.update(
        USERS,
        user_id,
        {
            "isBlocked": True,
            "blockReason": reason,
            "blockedAt": ctx.timestamp(),
            "blockedBy": admin_id,
        },
    )
    _log_action(ctx, batch, "block_user", admin_id, userId=user_id, reason=reason)
    await batch.commit()
    logger.info("Admin %s blocked user %s", admin_id, user_id)

    await notify(
        ctx,
        user_id,
        "account_blocked",
        f"Your account has been blocked. Reason: {reason}",
        actor_id=admin_id,
        entity_id=user_id,
        entity_type="user",
    )


async def unblock_user(ctx: ServiceContext, user_id: str, admin_id: str) -> None:
    """Lift a block and clear the block details.

    Raises:
        NotFoundError: If the user does not exist
    """
    await _require_user(ctx, user_id)
    batch = ctx.store.batch()
    batch.update(
        USERS,
        user_id,
        {"isBlocked": False, "blockReason": None, "blockedAt": None, "blockedBy": None},
    )
    _log_action(ctx, batch, "unblock_user", admin_id, userId=user_id)
    await batch.commit()
    logger.info("Admin %s unblocked user %s", admin_id, user_id)

    await notify(
        ctx,
        user_id,
        "account_unblocked",
        "Your account has been unblocked.",
        actor_id=admin_id,
        entity_id=user_id,
        entity_type="user",
    )


async def delete_user_account(ctx: ServiceContext, user_id: str, admin_id: str) -> None:
    """Remove a user and everything they authored.

    One batch deletes the user's posts (with their comments and shares), the
    user's own comments, events and notifications, removes the user from other
    users' follow lists and deletes the profile. Post ``commentCount`` values
    are lowered for comments removed from surviving posts. The audit entry is
    written afterwards, then the identity record is deleted; a failure of that
    last step is logged and does not undo the deletion.

    Raises:
        NotFoundError: If the user does not exist
    """
    user = await _require_user(ctx, user_id)

    posts = await ctx.store.query(Query(POSTS).where("authorId", "==", user_id))
    post_ids = {post.id for post in posts}
    doomed_comments: set[str] = set()
    doomed_shares: set[str] = set()
    for post_id in post_ids:
        for comment in await ctx.store.query(Query(COMMENTS).where("postId", "==", post_id)):
            doomed_comments.add(comment.id)
        for share in await ctx.store.query(Query(SHARES).where("postId", "==", post_id)):
            doomed_shares.add(share.id)

    own_comments = await ctx.store.query(Query(COMMENTS).where("authorId", "==", user_id))
    removed_per_post: Counter[str] = Counter()
    for comment in own_comments:
        post_id = comment.get("postId")
        if comment.id not in doomed_comments and post_id and post_id not in post_ids:
            removed_per_post[post_id] += 1
        doomed_comments.add(comment.id)

    events = await ctx.store.query(Query(EVENTS).where("authorId", "==", user_id))
    notifications = await ctx.store.query(
        Query(NOTIFICATIONS).where("userId", "==", user_id)
    )

    batch = ctx.store.batch()
    for post_id in post_ids:
        batch.delete(POSTS, post_id)
    for comment_id in doomed_comments:
        batch.delete(COMMENTS, comment_id)
    for share_id in doomed_shares:
        batch.delete(SHARES, share_id)
    if removed_per_post:
        surviving = await ctx.store.get_many(POSTS, list(removed_per_post))
        for post in surviving:
            if post.exists:
                removed = removed_per_post[post.id]
                batch.update(POSTS, post.id, {"commentCount": Increment(-removed)})
    for event in events:
        batch.delete(EVENTS, event.id)
    for notification in notifications:
        batch.delete(NOTIFICATIONS, notification.id)

    followers = [uid for uid in user.get("followers") or [] if uid != user_id]
    following = [uid for uid in user.get("following") or [] if uid != user_id]
    for other in await ctx.store.get_many(USERS, followers):
        if other.exists:
            batch.update(USERS, other.id, {"following": ArrayRemove(user_id)})
    for other in await ctx.store.get_many(USERS, following):
        if other.exists:
            batch.update(USERS, other.id, {"followers": ArrayRemove(user_id)})
    batch.delete(USERS, user_id)
    await batch.commit()
    logger.info(
        "Admin %s deleted user %s (%d posts, %d comments, %d events)",
        admin_id,
        user_id,
        len(post_ids),
        len(doomed_comments),
        len(events),
    )

    log_batch = ctx.store.batch()
    _log_action(ctx, log_batch, "delete_user", admin_id, userId=user_id)
    await log_batch.commit()

    if ctx.identity is not None:
        try:
            await ctx.identity.delete_user(user_id)
        except Exception:
            logger.warning("Could not delete identity record for %s", user_id, exc_info=True)


async def _set_admin(
    ctx: ServiceContext,
    user_id: str,
    admin_id: str,
    *,
    granted: bool,
) -> None:
    await _require_user(ctx, user_id)
    batch = ctx.store.batch()
    batch.update(USERS, user_id, {"isAdmin": granted})
    _log_action(ctx, batch, "grant_admin" if granted else "revoke_admin", admin_id, userId=user_id)
    await batch.commit()
    logger.info(
        "Admin %s %s admin privileges for %s",
        admin_id,
        "granted" if granted else "revoked",
        user_id,
    )

    if granted:
        await notify(
            ctx,
            user_id,
            "admin_role_granted",
            "You have been granted admin privileges.",
            actor_id=admin_id,
            entity_id=user_id,
            entity_type="user",
        )
    else:
        await notify(
            ctx,
            user_id,
            "admin_role_removed",
            "Your admin privileges have been revoked.",
            actor_id=admin_id,
            entity_id=user_id,
            entity_type="user",
        )


async def grant_admin_privileges(ctx: ServiceContext, user_id: str, admin_id: str) -> None:
    """Make ``user_id`` an administrator."""
    await _set_admin(ctx, user_id, admin_id, granted=True)


async def revoke_admin_privileges(ctx: ServiceContext, user_id: str, admin_id: str) -> None:
    """Take administrator rights away from ``user_id``."""
    await _set_admin(ctx, user_id, admin_id, granted=False)


async def create_report(ctx: ServiceContext, data: ReportCreate) -> str:
    """File a report in ``pending`` state.

    Reports against a user also increment that user's ``reportCount`` in the
    same batch.

    Raises:
        NotFoundError: If a reported user does not exist
    """
    report_id = new_document_id()
    document = data.to_document()
    document.update({"status": "pending", "createdAt": ctx.timestamp()})

    batch = ctx.store.batch()
    batch.set(REPORTS, report_id, document)
    if data.entity_type == "user":
        await _require_user(ctx, data.entity_id)
        batch.update(USERS, data.entity_id, {"reportCount": Increment(1)})
    await batch.commit()
    logger.info("Report %s filed against %s %s", report_id, data.entity_type, data.entity_id)
    return report_id


async def get_reports(ctx: ServiceContext, status: ReportStatus | None = None) -> list[Report]:
    """Return reports newest first, optionally only those in ``status``."""
    query = Query(REPORTS)
    if status:
        query = query.where("status", "==", status)
    query = query.order_by("createdAt", descending=True)
    return [Report.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def review_report(
    ctx: ServiceContext,
    report_id: str,
    admin_id: str,
    status: ReportStatus,
    action: str | None = None,
) -> Report:
    """Move a report forward and record who reviewed it.

    Status only moves forward: ``pending`` to ``reviewed`` to ``resolved`` or
    ``dismissed``. ``resolved`` and ``dismissed`` are both final.

    Returns:
        The updated report

    Raises:
        NotFoundError: If the report does not exist
        InvalidTransitionError: If ``status`` is not ahead of the current one
    """
    snapshot = await ctx.store.get(REPORTS, report_id)
    if not snapshot.exists:
        raise NotFoundError(REPORTS, report_id)
    current = snapshot.get("status", "pending")
    if _STATUS_RANK[status] <= _STATUS_RANK.get(current, 0):
        raise InvalidTransitionError(current, status)

    changes = {
        "status": status,
        "reviewedAt": ctx.timestamp(),
        "reviewedBy": admin_id,
        "action": action,
    }
    batch = ctx.store.batch()
    batch.update(REPORTS, report_id, changes)
    _log_action(
        ctx,
        batch,
        "review_report",
        admin_id,
        reportId=report_id,
        status=status,
        entityId=snapshot.get("entityId"),
        entityType=snapshot.get("entityType"),
    )
    await batch.commit()
    logger.info("Admin %s moved report %s to %s", admin_id, report_id, status)
    return Report.model_validate({**snapshot.to_dict(), **changes, "id": report_id})


async def delete_content(
    ctx: ServiceContext,
    entity_id: str,
    entity_type: RemovableEntityType,
    admin_id: str,
    reason: str,
) -> None:
    """Remove a post, comment or event on behalf of a moderator.

    Posts and comments go through the regular delete paths so dependent
    documents and counters stay consistent. The author is told why.

    Raises:
        NotFoundError: If the entity does not exist
    """
    collection = _CONTENT_COLLECTIONS[entity_type]
    snapshot = await ctx.store.get(collection, entity_id)
    if not snapshot.exists:
        raise NotFoundError(collection, entity_id)
    author_id = snapshot.get("authorId")

    if entity_type == "post":
        await delete_post(ctx, entity_id)
    elif entity_type == "comment":
        await delete_comment(ctx, entity_id)
    else:
        await delete_event(ctx, entity_id)

    batch = ctx.store.batch()
    _log_action(
        ctx,
        batch,
        f"delete_{entity_type}",
        admin_id,
        entityId=entity_id,
        entityType=entity_type,
        reason=reason,
    )
    await batch.commit()
    logger.info("Admin %s removed %s %s", admin_id, entity_type, entity_id)

    if author_id:
        await notify(
            ctx,
            author_id,
            "content_removed",
            f"Your {entity_type} has been removed by an administrator. Reason: {reason}",
            actor_id=admin_id,
            entity_id=entity_id,
            entity_type=entity_type,
        )


async def get_admin_logs(ctx: ServiceContext, limit: int | None = None) -> list[AdminLog]:
    """Return the newest audit log entries."""
    count = limit if limit is not None else ctx.settings.admin_logs_page_size
    query = Query(ADMIN_LOGS).order_by("timestamp", descending=True).limit_to(count)
    return [AdminLog.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def get_admin_stats(ctx: ServiceContext) -> AdminStats:
    """Count users, blocked users, posts, events and pending reports."""
    store = ctx.store
    return AdminStats(
        total_users=len(await store.query(Query(USERS))),
        blocked_users=len(await store.query(Query(USERS).where("isBlocked", "==", True))),
        total_posts=len(await store.query(Query(POSTS))),
        total_events=len(await store.query(Query(EVENTS))),
        pending_reports=len(await store.query(Query(REPORTS).where("status", "==", "pending"))),
    )
