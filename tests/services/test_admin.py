"""Tests for moderation actions, reports and the audit log."""

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from conftest import make_user
from travel_threads.errors import InvalidTransitionError, NotFoundError
from travel_threads.schemas.admin import ReportCreate
from travel_threads.schemas.event import EventCreate
from travel_threads.schemas.post import CommentCreate, PostCreate, ShareCreate
from travel_threads.services import admin
from travel_threads.services.collections import COMMENTS, EVENTS, NOTIFICATIONS, POSTS, SHARES
from travel_threads.services.content import add_comment, create_post, get_post, share_post
from travel_threads.services.context import ServiceContext
from travel_threads.services.events import create_event
from travel_threads.services.notifications import create_notification, get_user_notifications
from travel_threads.services.social import find_user_profile, follow_user
from travel_threads.store.base import Query


@pytest_asyncio.fixture()
async def moderator(ctx: ServiceContext) -> str:
    return await make_user(ctx, "mod", "Moderator", isAdmin=True)


@pytest.mark.asyncio
async def test_block_and_unblock(ctx: ServiceContext, alice: str, moderator: str) -> None:
    await admin.block_user(ctx, alice, moderator, "Spam")

    profile = await find_user_profile(ctx, alice)
    assert profile is not None
    assert profile.is_blocked
    assert (profile.block_reason, profile.blocked_by) == ("Spam", moderator)
    assert profile.blocked_at is not None

    await admin.unblock_user(ctx, alice, moderator)
    profile = await find_user_profile(ctx, alice)
    assert profile is not None
    assert not profile.is_blocked
    assert profile.block_reason is None and profile.blocked_at is None

    messages = [n.message for n in await get_user_notifications(ctx, alice)]
    assert messages == [
        "Your account has been unblocked.",
        "Your account has been blocked. Reason: Spam",
    ]
    logs = await admin.get_admin_logs(ctx)
    assert [(log.action, log.user_id) for log in logs] == [
        ("unblock_user", alice),
        ("block_user", alice),
    ]
    assert logs[1].reason == "Spam"


@pytest.mark.asyncio
async def test_block_unknown_user(ctx: ServiceContext, moderator: str) -> None:
    with pytest.raises(NotFoundError):
        await admin.block_user(ctx, "ghost", moderator, "Spam")
    assert await admin.get_admin_logs(ctx) == []


@pytest.mark.asyncio
async def test_admin_privileges(ctx: ServiceContext, alice: str, moderator: str) -> None:
    await admin.grant_admin_privileges(ctx, alice, moderator)
    profile = await find_user_profile(ctx, alice)
    assert profile is not None and profile.is_admin

    await admin.revoke_admin_privileges(ctx, alice, moderator)
    profile = await find_user_profile(ctx, alice)
    assert profile is not None and not profile.is_admin

    types = [n.type for n in await get_user_notifications(ctx, alice)]
    assert types == ["admin_role_removed", "admin_role_granted"]
    actions = [log.action for log in await admin.get_admin_logs(ctx)]
    assert actions == ["revoke_admin", "grant_admin"]


@pytest.mark.asyncio
async def test_delete_user_account_cascades(
    ctx: ServiceContext, alice: str, bob: str, carol: str, moderator: str
) -> None:
    await follow_user(ctx, alice, bob)
    await follow_user(ctx, bob, alice)
    await follow_user(ctx, carol, bob)

    bob_post = await create_post(ctx, PostCreate(title="Bob's trip", author_id=bob))
    await add_comment(ctx, CommentCreate(post_id=bob_post, author_id=alice, content="nice"))
    await share_post(ctx, ShareCreate(post_id=bob_post, author_id=carol))

    alice_post = await create_post(ctx, PostCreate(title="Alice's trip", author_id=alice))
    await add_comment(ctx, CommentCreate(post_id=alice_post, author_id=bob, content="one"))
    await add_comment(ctx, CommentCreate(post_id=alice_post, author_id=bob, content="two"))
    kept = await add_comment(
        ctx, CommentCreate(post_id=alice_post, author_id=carol, content="three")
    )

    start = datetime(2024, 7, 1, tzinfo=UTC)
    await create_event(
        ctx,
        EventCreate(title="Bob's meetup", start_date=start, end_date=start + timedelta(hours=1),
                    author_id=bob),
    )

    await admin.delete_user_account(ctx, bob, moderator)

    assert await find_user_profile(ctx, bob) is None
    assert await get_post(ctx, bob_post) is None
    assert await ctx.store.query(Query(SHARES)) == []
    assert await ctx.store.query(Query(EVENTS)) == []
    assert await ctx.store.query(Query(NOTIFICATIONS).where("userId", "==", bob)) == []
    assert [c.id for c in await ctx.store.query(Query(COMMENTS))] == [kept]
    assert [p.id for p in await ctx.store.query(Query(POSTS))] == [alice_post]

    surviving = await get_post(ctx, alice_post)
    assert surviving is not None and surviving.comment_count == 1

    alice_profile = await find_user_profile(ctx, alice)
    carol_profile = await find_user_profile(ctx, carol)
    assert alice_profile is not None and carol_profile is not None
    assert alice_profile.following == [] and alice_profile.followers == []
    assert carol_profile.following == []

    [log] = await admin.get_admin_logs(ctx)
    assert (log.action, log.user_id) == ("delete_user", bob)


@pytest.mark.asyncio
async def test_delete_user_account_removes_credential(
    ctx: ServiceContext, moderator: str
) -> None:
    session = await ctx.identity.sign_up("dana@example.com", "secret123", "Dana")

    await admin.delete_user_account(ctx, session.user_id, moderator)

    assert await find_user_profile(ctx, session.user_id) is None
    retry = await ctx.identity.sign_up("dana@example.com", "secret123", "Dana")
    assert retry.user_id != session.user_id


@pytest.mark.asyncio
async def test_delete_unknown_user(ctx: ServiceContext, moderator: str) -> None:
    with pytest.raises(NotFoundError):
        await admin.delete_user_account(ctx, "ghost", moderator)


@pytest.mark.asyncio
async def test_user_report_increments_report_count(
    ctx: ServiceContext, alice: str, bob: str
) -> None:
    report_id = await admin.create_report(
        ctx,
        ReportCreate(reporter_id=alice, entity_id=bob, entity_type="user", reason="Harassment"),
    )

    [report] = await admin.get_reports(ctx)
    assert report.id == report_id
    assert report.status == "pending"
    profile = await find_user_profile(ctx, bob)
    assert profile is not None and profile.report_count == 1

    with pytest.raises(NotFoundError):
        await admin.create_report(
            ctx,
            ReportCreate(reporter_id=alice, entity_id="ghost", entity_type="user", reason="x"),
        )
    assert len(await admin.get_reports(ctx)) == 1


@pytest.mark.asyncio
async def test_report_status_moves_forward_only(
    ctx: ServiceContext, alice: str, moderator: str
) -> None:
    report_id = await admin.create_report(
        ctx,
        ReportCreate(reporter_id=alice, entity_id="p1", entity_type="post", reason="Spam"),
    )

    reviewed = await admin.review_report(ctx, report_id, moderator, "reviewed")
    assert reviewed.status == "reviewed"
    assert reviewed.reviewed_by == moderator and reviewed.reviewed_at is not None

    resolved = await admin.review_report(ctx, report_id, moderator, "resolved", "Post removed")
    assert resolved.action == "Post removed"

    for status in ("pending", "reviewed", "resolved", "dismissed"):
        with pytest.raises(InvalidTransitionError):
            await admin.review_report(ctx, report_id, moderator, status)

    assert [r.id for r in await admin.get_reports(ctx, "resolved")] == [report_id]
    assert await admin.get_reports(ctx, "pending") == []
    actions = [log.action for log in await admin.get_admin_logs(ctx)]
    assert actions == ["review_report", "review_report"]


@pytest.mark.asyncio
async def test_pending_report_may_be_dismissed_directly(
    ctx: ServiceContext, alice: str, moderator: str
) -> None:
    report_id = await admin.create_report(
        ctx,
        ReportCreate(reporter_id=alice, entity_id="c1", entity_type="comment", reason="Rude"),
    )
    report = await admin.review_report(ctx, report_id, moderator, "dismissed")
    assert report.status == "dismissed"

    with pytest.raises(NotFoundError):
        await admin.review_report(ctx, "missing", moderator, "reviewed")


@pytest.mark.asyncio
async def test_delete_content_uses_regular_delete_paths(
    ctx: ServiceContext, alice: str, bob: str, moderator: str
) -> None:
    post_id = await create_post(ctx, PostCreate(title="Off-topic", author_id=alice))
    comment_id = await add_comment(
        ctx, CommentCreate(post_id=post_id, author_id=bob, content="rude")
    )

    await admin.delete_content(ctx, comment_id, "comment", moderator, "Rude")
    post = await get_post(ctx, post_id)
    assert post is not None and post.comment_count == 0

    await admin.delete_content(ctx, post_id, "post", moderator, "Off-topic")
    assert await get_post(ctx, post_id) is None
    profile = await find_user_profile(ctx, alice)
    assert profile is not None and profile.thread_count == 0

    bob_notes = await get_user_notifications(ctx, bob)
    assert bob_notes[0].type == "content_removed"
    assert bob_notes[0].message == (
        "Your comment has been removed by an administrator. Reason: Rude"
    )
    actions = [log.action for log in await admin.get_admin_logs(ctx)]
    assert actions == ["delete_post", "delete_comment"]

    with pytest.raises(NotFoundError):
        await admin.delete_content(ctx, post_id, "post", moderator, "again")


@pytest.mark.asyncio
async def test_users_and_stats(ctx: ServiceContext, alice: str, bob: str, moderator: str) -> None:
    await create_post(ctx, PostCreate(title="Hello", author_id=alice))
    await admin.block_user(ctx, bob, moderator, "Spam")
    await admin.create_report(
        ctx,
        ReportCreate(reporter_id=alice, entity_id=bob, entity_type="user", reason="Spam"),
    )
    await create_notification(ctx, alice, "mention", "hi")

    stats = await admin.get_admin_stats(ctx)

    assert stats.total_users == 3
    assert stats.blocked_users == 1
    assert stats.total_posts == 1
    assert stats.total_events == 0
    assert stats.pending_reports == 1
    assert len(await admin.get_users(ctx)) == 3
    assert len(await admin.get_users(ctx, limit=2)) == 2
