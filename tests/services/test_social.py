"""Tests for profiles, the follow graph and the following feed."""

import pytest
from pydantic import ValidationError

from conftest import make_user
from travel_threads.errors import InvalidOperationError, NotFoundError
from travel_threads.schemas.post import PostCreate
from travel_threads.schemas.user import ProfileCreate, ProfileUpdate
from travel_threads.services import social
from travel_threads.services.content import create_post
from travel_threads.services.context import ServiceContext
from travel_threads.services.notifications import get_user_notifications


@pytest.mark.asyncio
async def test_get_user_profile_creates_default(ctx: ServiceContext) -> None:
    assert await social.get_user_profile(ctx, None) is None
    assert await social.find_user_profile(ctx, "newbie") is None

    profile = await social.get_user_profile(ctx, "newbie")

    assert profile is not None
    assert profile.display_name == "New User"
    assert profile.followers == [] and profile.following == []
    assert (profile.thread_count, profile.unread_notifications) == (0, 0)
    assert not profile.is_admin and not profile.is_blocked
    stored = await social.find_user_profile(ctx, "newbie")
    assert stored is not None and stored.created_at == profile.created_at


@pytest.mark.asyncio
async def test_create_user_profile_keeps_existing_graph(
    ctx: ServiceContext, alice: str, bob: str
) -> None:
    await social.follow_user(ctx, bob, alice)

    profile = await social.create_user_profile(
        ctx, alice, ProfileCreate(display_name="Alice W.", bio="Backpacker")
    )

    assert profile.display_name == "Alice W."
    assert profile.bio == "Backpacker"
    assert profile.followers == [bob]
    assert profile.unread_notifications == 1


@pytest.mark.asyncio
async def test_update_user_profile(ctx: ServiceContext, alice: str) -> None:
    await social.update_user_profile(ctx, alice, ProfileUpdate(bio="Island hopper"))
    profile = await social.find_user_profile(ctx, alice)
    assert profile is not None
    assert (profile.display_name, profile.bio) == ("Alice", "Island hopper")

    with pytest.raises(NotFoundError):
        await social.update_user_profile(ctx, "ghost", ProfileUpdate(bio="x"))


@pytest.mark.parametrize("payload", [{"displayName": None}, {"bio": None}, {"photoURL": None}])
def test_profile_update_rejects_nulls(payload: dict) -> None:
    with pytest.raises(ValidationError):
        ProfileUpdate.model_validate(payload)


@pytest.mark.asyncio
async def test_follow_updates_both_sides(ctx: ServiceContext, alice: str, bob: str) -> None:
    state = await social.follow_user(ctx, alice, bob)

    assert state.following and state.follower_count == 1
    assert [p.id for p in await social.get_following(ctx, alice)] == [bob]
    assert [p.id for p in await social.get_followers(ctx, bob)] == [alice]
    notes = await get_user_notifications(ctx, bob)
    assert [n.type for n in notes] == ["new_follower"]
    assert notes[0].entity_id == alice


@pytest.mark.asyncio
async def test_follow_twice_keeps_single_edge(ctx: ServiceContext, alice: str, bob: str) -> None:
    await social.follow_user(ctx, alice, bob)
    state = await social.follow_user(ctx, alice, bob)

    assert state.follower_count == 1
    bob_profile = await social.find_user_profile(ctx, bob)
    assert bob_profile is not None and bob_profile.followers == [alice]
    assert len(await get_user_notifications(ctx, bob)) == 1


@pytest.mark.asyncio
async def test_unfollow(ctx: ServiceContext, alice: str, bob: str) -> None:
    await social.follow_user(ctx, alice, bob)
    state = await social.unfollow_user(ctx, alice, bob)

    assert not state.following and state.follower_count == 0
    assert await social.get_following(ctx, alice) == []
    assert await social.get_followers(ctx, bob) == []


@pytest.mark.asyncio
async def test_follow_rejects_self_and_unknown(ctx: ServiceContext, alice: str) -> None:
    with pytest.raises(InvalidOperationError):
        await social.follow_user(ctx, alice, alice)
    with pytest.raises(NotFoundError):
        await social.follow_user(ctx, alice, "ghost")
    profile = await social.find_user_profile(ctx, alice)
    assert profile is not None and profile.following == []


@pytest.mark.asyncio
async def test_dangling_follow_ids_are_skipped(ctx: ServiceContext) -> None:
    await make_user(ctx, "dave", "Dave", following=["ghost", "erin"])
    await make_user(ctx, "erin", "Erin")

    assert [p.id for p in await social.get_following(ctx, "dave")] == ["erin"]


@pytest.mark.asyncio
async def test_following_posts_chunk_authors(
    ctx: ServiceContext, alice: str, bob: str, carol: str
) -> None:
    await make_user(ctx, "dave", "Dave")
    await make_user(ctx, "erin", "Erin")
    expected = []
    for author in ("bob", "carol", "dave", "erin"):
        await social.follow_user(ctx, alice, author)
        expected.append(await create_post(ctx, PostCreate(title=f"By {author}", author_id=author)))
    await create_post(ctx, PostCreate(title="Own post", author_id=alice))

    posts = await social.get_following_posts(ctx, alice)

    assert [post.id for post in posts] == list(reversed(expected))
    assert await social.get_following_posts(ctx, bob) == []


@pytest.mark.asyncio
async def test_following_posts_respects_cap(
    ctx: ServiceContext, alice: str, bob: str, carol: str
) -> None:
    ctx.settings.following_feed_limit = 2
    await social.follow_user(ctx, alice, bob)
    await social.follow_user(ctx, alice, carol)
    ids = [
        await create_post(ctx, PostCreate(title=f"Post {n}", author_id=author))
        for n, author in enumerate([bob, carol, bob, carol])
    ]

    posts = await social.get_following_posts(ctx, alice)

    assert [post.id for post in posts] == [ids[3], ids[2]]


@pytest.mark.asyncio
async def test_search_users(ctx: ServiceContext, alice: str) -> None:
    await make_user(ctx, "dave", "Dave", bio="Loves ALICE springs", email="d@example.com")
    await make_user(ctx, "erin", "Erin", email="erin@alice.org")

    found = await social.search_users(ctx, "alice")

    assert sorted(user.id for user in found) == ["alice", "dave", "erin"]
    assert await social.search_users(ctx, "nobody") == []
