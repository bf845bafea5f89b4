# tests/services/test_content.py
"""Tests for posts, comments, likes and shares."""

import pytest
from pydantic import ValidationError

from travel_threads.errors import InvalidOperationError, NotFoundError
from travel_threads.schemas.common import Location
from travel_threads.schemas.post import CommentCreate, PostCreate, PostUpdate, ShareCreate
from travel_threads.services import content
from travel_threads.services.collections import COMMENTS, SHARES, USERS
from travel_threads.services.context import ServiceContext
from travel_threads.services.notifications import get_user_notifications
from travel_threads.store.base import Query


async def _post(ctx: ServiceContext, author: str, title: str = "Sunrise in Hanoi", **kw) -> str:
    return await content.create_post(ctx, PostCreate(title=title, author_id=author, **kw))


@pytest.mark.asyncio
async def test_create_post_sets_counters_and_thread_count(ctx: ServiceContext, alice: str) -> None:
    post_id = await _post(
        ctx,
        alice,
        content="Street food everywhere",
        location=Location(lat=21.03, lng=105.85, name="Hanoi, Vietnam"),
    )

    post = await content.get_post(ctx, post_id)
    assert post is not None
    assert post.author_id == alice
    assert (post.likes, post.comment_count, post.share_count) == (0, 0, 0)
    assert post.liked_by == []
    assert post.location_keywords == ["hanoi", "vietnam"]
    assert post.geopoint is not None and post.geopoint.latitude == 21.03
    assert (await ctx.store.get(USERS, alice)).get("threadCount") == 1


@pytest.mark.asyncio
async def test_create_post_requires_existing_author(ctx: ServiceContext) -> None:
    with pytest.raises(NotFoundError):
        await _post(ctx, "ghost")
    assert await content.get_posts(ctx) == []

    with pytest.raises(InvalidOperationError):
        await content.create_post(ctx, PostCreate(title="No author"))


@pytest.mark.asyncio
async def test_get_posts_is_newest_first(ctx: ServiceContext, alice: str, bob: str) -> None:
    first = await _post(ctx, alice, "First")
    second = await _post(ctx, bob, "Second")

    assert [post.id for post in await content.get_posts(ctx)] == [second, first]
    assert [post.id for post in await content.get_user_posts(ctx, alice)] == [first]
    assert await content.get_post(ctx, "missing") is None


@pytest.mark.asyncio
async def test_update_post_replaces_and_removes_location(ctx: ServiceContext, alice: str) -> None:
    post_id = await _post(ctx, alice, location=Location(lat=1, lng=2, name="Rome, Italy"))

    await content.update_post(ctx, post_id, PostUpdate(title="Roman holiday"))
    post = await content.get_post(ctx, post_id)
    assert post is not None
    assert post.title == "Roman holiday"
    assert post.location_keywords == ["rome", "italy"]

    await content.update_post(ctx, post_id, PostUpdate(location=None))
    post = await content.get_post(ctx, post_id)
    assert post is not None
    assert post.location is None
    assert post.geopoint is None
    assert post.location_keywords is None


@pytest.mark.asyncio
async def test_update_missing_post_raises(ctx: ServiceContext) -> None:
    with pytest.raises(NotFoundError):
        await content.update_post(ctx, "missing", PostUpdate(title="x"))


@pytest.mark.parametrize("field", ["title", "content"])
def test_post_update_rejects_null_text(field: str) -> None:
    with pytest.raises(ValidationError):
        PostUpdate(**{field: None})
    assert PostUpdate(image_url=None).to_document(exclude_unset=True) == {"imageUrl": None}


@pytest.mark.asyncio
async def test_like_is_idempotent_and_notifies_once(
    ctx: ServiceContext, alice: str, bob: str
) -> None:
    post_id = await _post(ctx, alice)

    state = await content.like_post(ctx, post_id, bob)
    again = await content.like_post(ctx, post_id, bob)

    assert state.liked and state.likes == 1
    assert again.liked and again.likes == 1
    post = await content.get_post(ctx, post_id)
    assert post is not None
    assert post.likes == len(post.liked_by) == 1

    notifications = await get_user_notifications(ctx, alice)
    assert [n.type for n in notifications] == ["post_like"]
    assert notifications[0].actor_name == "Bob"


@pytest.mark.asyncio
async def test_unlike_without_like_changes_nothing(
    ctx: ServiceContext, alice: str, bob: str
) -> None:
    post_id = await _post(ctx, alice)

    state = await content.unlike_post(ctx, post_id, bob)
    assert not state.liked and state.likes == 0

    await content.like_post(ctx, post_id, bob)
    state = await content.unlike_post(ctx, post_id, bob)
    assert not state.liked and state.likes == 0
    post = await content.get_post(ctx, post_id)
    assert post is not None and post.liked_by == []


@pytest.mark.asyncio
async def test_self_like_does_not_notify(ctx: ServiceContext, alice: str) -> None:
    post_id = await _post(ctx, alice)
    await content.like_post(ctx, post_id, alice)
    assert await get_user_notifications(ctx, alice) == []


@pytest.mark.asyncio
async def test_like_missing_post_raises(ctx: ServiceContext, bob: str) -> None:
    with pytest.raises(NotFoundError):
        await content.like_post(ctx, "missing", bob)


@pytest.mark.asyncio
async def test_comments_replies_and_notifications(
    ctx: ServiceContext, alice: str, bob: str, carol: str
) -> None:
    post_id = await _post(ctx, alice, "Trekking in Nepal")
    top = await content.add_comment(
        ctx, CommentCreate(post_id=post_id, author_id=bob, content="Which trail?")
    )
    reply = await content.add_comment(
        ctx,
        CommentCreate(post_id=post_id, author_id=carol, content="Annapurna", parent_id=top),
    )

    assert [c.id for c in await content.get_comments(ctx, post_id)] == [top]
    assert [c.id for c in await content.get_replies(ctx, top)] == [reply]
    post = await content.get_post(ctx, post_id)
    assert post is not None and post.comment_count == 2

    alice_types = [n.type for n in await get_user_notifications(ctx, alice)]
    assert alice_types == ["post_comment", "post_comment"]
    bob_notes = await get_user_notifications(ctx, bob)
    assert [n.type for n in bob_notes] == ["comment_reply"]
    assert bob_notes[0].data["preview"] == "Annapurna"


@pytest.mark.asyncio
async def test_comment_on_missing_post_raises(ctx: ServiceContext, bob: str) -> None:
    with pytest.raises(NotFoundError):
        await content.add_comment(
            ctx, CommentCreate(post_id="missing", author_id=bob, content="hi")
        )


@pytest.mark.asyncio
async def test_reply_parent_must_belong_to_the_post(
    ctx: ServiceContext, alice: str, bob: str
) -> None:
    nepal = await _post(ctx, alice, "Trekking in Nepal")
    peru = await _post(ctx, alice, "Inca trail")
    top = await content.add_comment(
        ctx, CommentCreate(post_id=nepal, author_id=bob, content="Which trail?")
    )

    with pytest.raises(InvalidOperationError):
        await content.add_comment(
            ctx, CommentCreate(post_id=peru, author_id=bob, content="Wrong thread", parent_id=top)
        )
    with pytest.raises(NotFoundError):
        await content.add_comment(
            ctx, CommentCreate(post_id=peru, author_id=bob, content="Gone", parent_id="missing")
        )
    post = await content.get_post(ctx, peru)
    assert post is not None and post.comment_count == 0


@pytest.mark.asyncio
async def test_delete_comment_removes_replies_and_adjusts_count(
    ctx: ServiceContext, alice: str, bob: str
) -> None:
    post_id = await _post(ctx, alice)
    top = await content.add_comment(
        ctx, CommentCreate(post_id=post_id, author_id=bob, content="one")
    )
    await content.add_comment(
        ctx, CommentCreate(post_id=post_id, author_id=alice, content="two", parent_id=top)
    )
    keep = await content.add_comment(
        ctx, CommentCreate(post_id=post_id, author_id=alice, content="three")
    )

    assert await content.delete_comment(ctx, top)
    assert not await content.delete_comment(ctx, top)

    post = await content.get_post(ctx, post_id)
    assert post is not None and post.comment_count == 1
    assert [c.id for c in await content.get_comments(ctx, post_id)] == [keep]


@pytest.mark.asyncio
async def test_comment_likes(ctx: ServiceContext, alice: str, bob: str) -> None:
    post_id = await _post(ctx, alice)
    comment_id = await content.add_comment(
        ctx, CommentCreate(post_id=post_id, author_id=alice, content="hello")
    )
    state = await content.like_comment(ctx, comment_id, bob)
    assert state.likes == 1 and state.liked
    state = await content.unlike_comment(ctx, comment_id, bob)
    assert state.likes == 0 and not state.liked


@pytest.mark.asyncio
async def test_share_increments_share_count(ctx: ServiceContext, alice: str, bob: str) -> None:
    post_id = await _post(ctx, alice)
    share_id = await content.share_post(
        ctx, ShareCreate(post_id=post_id, author_id=bob, caption="Must see")
    )

    shares = await content.get_shares(ctx, post_id)
    assert [s.id for s in shares] == [share_id]
    assert shares[0].caption == "Must see"
    post = await content.get_post(ctx, post_id)
    assert post is not None and post.share_count == 1

    with pytest.raises(NotFoundError):
        await content.share_post(ctx, ShareCreate(post_id="missing", author_id=bob))


@pytest.mark.asyncio
async def test_delete_post_cascades(ctx: ServiceContext, alice: str, bob: str) -> None:
    post_id = await _post(ctx, alice)
    await content.add_comment(ctx, CommentCreate(post_id=post_id, author_id=bob, content="x"))
    await content.share_post(ctx, ShareCreate(post_id=post_id, author_id=bob))

    assert await content.delete_post(ctx, post_id)

    assert await content.get_post(ctx, post_id) is None
    assert await ctx.store.query(Query(COMMENTS)) == []
    assert await ctx.store.query(Query(SHARES)) == []
    assert (await ctx.store.get(USERS, alice)).get("threadCount") == 0
    assert not await content.delete_post(ctx, post_id)
