"""User profiles, the follow graph and the following feed."""
from __future__ import annotations

import logging
from typing import Any

from travel_threads.errors import InvalidOperationError, NotFoundError
from travel_threads.schemas.post import Post
from travel_threads.schemas.user import (
    DEFAULT_DISPLAY_NAME,
    FollowState,
    ProfileCreate,
    ProfileUpdate,
    UserProfile,
)
from travel_threads.services.collections import POSTS, USERS
from travel_threads.services.context import ServiceContext
from travel_threads.services.notifications import notify
from travel_threads.store.base import ArrayRemove, ArrayUnion, DocumentSnapshot, Query

logger = logging.getLogger(__name__)

__all__ = [
    "default_profile_document",
    "get_user_profile",
    "find_user_profile",
    "create_user_profile",
    "update_user_profile",
    "follow_user",
    "unfollow_user",
    "get_followers",
    "get_following",
    "get_following_posts",
    "search_users",
]


def default_profile_document(
    created_at: str,
    display_name: str = DEFAULT_DISPLAY_NAME,
    email: str = "",
    photo_url: str = "",
    bio: str = "",
) -> dict[str, Any]:
    """Return the fields of a freshly created profile."""
    return {
        "displayName": display_name,
        "bio": bio,
        "photoURL": photo_url,
        "email": email,
        "createdAt": created_at,
        "followers": [],
        "following": [],
        "threadCount": 0,
        "unreadNotifications": 0,
        "reportCount": 0,
        "isAdmin": False,
        "isBlocked": False,
    }


async def get_user_profile(ctx: ServiceContext, user_id: str | None) -> UserProfile | None:
    """Return a user's profile, creating a default one if none exists yet.

    Returns:
        None for an empty ``user_id``; otherwise the stored or newly created profile
    """
    if not user_id:
        return None
    snapshot = await ctx.store.get(USERS, user_id)
    if snapshot.exists:
        return UserProfile.from_snapshot(snapshot)

    document = default_profile_document(ctx.timestamp())
    await ctx.store.set(USERS, user_id, document)
    logger.info("Created default profile for %s", user_id)
    return UserProfile.model_validate({**document, "id": user_id})


async def find_user_profile(ctx: ServiceContext, user_id: str) -> UserProfile | None:
    """Return a user's profile without creating one."""
    snapshot = await ctx.store.get(USERS, user_id)
    return UserProfile.from_snapshot(snapshot) if snapshot.exists else None


async def create_user_profile(
    ctx: ServiceContext,
    user_id: str,
    data: ProfileCreate,
) -> UserProfile:
    """Create (or fill in) a profile document for ``user_id``.

    Existing fields are kept; the given values and any missing defaults are
    merged in.
    """
    document = default_profile_document(
        ctx.timestamp(),
        display_name=data.display_name,
        email=data.email,
        photo_url=data.photo_url,
        bio=data.bio,
    )
    existing = await ctx.store.get(USERS, user_id)
    if existing.exists:
        # Keep graph, counters and flags of a profile that was auto-created earlier.
        document = {
            key: value
            for key, value in document.items()
            if key not in existing.data or key in ("displayName", "email", "photoURL", "bio")
        }
    await ctx.store.set(USERS, user_id, document, merge=True)
    snapshot = await ctx.store.get(USERS, user_id)
    return UserProfile.from_snapshot(snapshot)


async def update_user_profile(ctx: ServiceContext, user_id: str, data: ProfileUpdate) -> None:
    """Write the profile fields set on ``data``.

    Raises:
        NotFoundError: If the user has no profile document
    """
    changes = data.to_document(exclude_unset=True)
    if changes:
        await ctx.store.update(USERS, user_id, changes)


async def _load_pair(
    ctx: ServiceContext,
    user_id: str,
    target_id: str,
) -> tuple[DocumentSnapshot, DocumentSnapshot]:
    if user_id == target_id:
        raise InvalidOperationError("Users cannot follow themselves")
    user, target = await ctx.store.get_many(USERS, [user_id, target_id])
    if not user.exists:
        raise NotFoundError(USERS, user_id)
    if not target.exists:
        raise NotFoundError(USERS, target_id)
    return user, target


async def follow_user(ctx: ServiceContext, user_id: str, target_id: str) -> FollowState:
    """Make ``user_id`` follow ``target_id``.

    Both sides of the edge are written in one batch. The target is notified
    when they gain a new follower.

    Raises:
        InvalidOperationError: If a user tries to follow themselves
        NotFoundError: If either profile does not exist
    """
    user, target = await _load_pair(ctx, user_id, target_id)
    following = user.get("following") or []
    followers = target.get("followers") or []

    batch = ctx.store.batch()
    if target_id not in following:
        batch.update(USERS, user_id, {"following": ArrayUnion(target_id)})
    if user_id not in followers:
        batch.update(USERS, target_id, {"followers": ArrayUnion(user_id)})
    await batch.commit()

    if user_id not in followers:
        await notify(
            ctx,
            target_id,
            "new_follower",
            "Someone started following you",
            actor_id=user_id,
            entity_id=user_id,
            entity_type="user",
        )
    return FollowState(
        user_id=user_id,
        target_id=target_id,
        following=True,
        follower_count=len(set(followers) | {user_id}),
    )


async def unfollow_user(ctx: ServiceContext, user_id: str, target_id: str) -> FollowState:
    """Remove the edge ``user_id`` -> ``target_id`` from both profiles in one batch."""
    user, target = await _load_pair(ctx, user_id, target_id)
    following = user.get("following") or []
    followers = target.get("followers") or []

    batch = ctx.store.batch()
    if target_id in following:
        batch.update(USERS, user_id, {"following": ArrayRemove(target_id)})
    if user_id in followers:
        batch.update(USERS, target_id, {"followers": ArrayRemove(user_id)})
    await batch.commit()
    return FollowState(
        user_id=user_id,
        target_id=target_id,
        following=False,
        follower_count=len(set(followers) - {user_id}),
    )


async def _resolve_profiles(ctx: ServiceContext, user_id: str, field: str) -> list[UserProfile]:
    snapshot = await ctx.store.get(USERS, user_id)
    ids = snapshot.get(field) or []
    if not ids:
        return []
    profiles = await ctx.store.get_many(USERS, ids)
    return [UserProfile.from_snapshot(profile) for profile in profiles if profile.exists]


async def get_followers(ctx: ServiceContext, user_id: str) -> list[UserProfile]:
    """Return the profiles following ``user_id``; ids without a profile are skipped."""
    return await _resolve_profiles(ctx, user_id, "followers")


async def get_following(ctx: ServiceContext, user_id: str) -> list[UserProfile]:
    """Return the profiles ``user_id`` follows; ids without a profile are skipped."""
    return await _resolve_profiles(ctx, user_id, "following")


async def get_following_posts(ctx: ServiceContext, user_id: str) -> list[Post]:
    """Build the following feed at read time.

    Posts by followed users are fetched with ``authorId in [...]`` queries,
    one per group of ids that fits the store's ``in`` limit, merged newest
    first and capped at ``following_feed_limit``.
    """
    snapshot = await ctx.store.get(USERS, user_id)
    following = list(dict.fromkeys(snapshot.get("following") or []))
    if not following:
        return []

    cap = ctx.settings.following_feed_limit
    chunk_size = ctx.settings.query_in_limit
    posts: dict[str, Post] = {}
    for start in range(0, len(following), chunk_size):
        query = (
            Query(POSTS)
            .where("authorId", "in", following[start : start + chunk_size])
            .order_by("createdAt", descending=True)
            .limit_to(cap)
        )
        for post_snapshot in await ctx.store.query(query):
            posts[post_snapshot.id] = Post.from_snapshot(post_snapshot)
    logger.debug(
        "Following feed for %s: %d authors, %d candidate posts", user_id, len(following), len(posts)
    )
    ordered = sorted(posts.values(), key=lambda post: post.created_at, reverse=True)
    return ordered[:cap]


async def search_users(ctx: ServiceContext, text: str) -> list[UserProfile]:
    """Case-insensitive substring search over display name, bio and email."""
    needle = text.lower()
    users = [UserProfile.from_snapshot(snapshot) for snapshot in await ctx.store.query(Query(USERS))]
    return [
        user
        for user in users
        if needle in user.display_name.lower()
        or needle in user.bio.lower()
        or needle in user.email.lower()
    ]
