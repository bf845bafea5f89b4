"""Feed ranking, page slicing and suggestions.

Feeds are composed in process: fetch the full candidate list, rank it, then
slice out one page. There is no cursor into the store.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime

from travel_threads.schemas.feed import FeedPage, FeedSort
from travel_threads.schemas.post import Post
from travel_threads.schemas.user import UserProfile
from travel_threads.services.collections import USERS
from travel_threads.services.content import get_posts
from travel_threads.services.context import ServiceContext
from travel_threads.services.social import get_following_posts

__all__ = [
    "trending_score",
    "rank_posts",
    "paginate",
    "get_home_feed",
    "get_following_feed",
    "get_suggested_users",
]


def trending_score(post: Post, now: datetime) -> float:
    """Return ``(likes + comments + shares) / sqrt(age in milliseconds)``.

    Posts stamped at (or after) ``now`` are treated as one millisecond old.
    """
    age_ms = (now - post.created_at).total_seconds() * 1000
    return post.engagement / math.sqrt(max(age_ms, 1.0))


def rank_posts(
    posts: Sequence[Post],
    sort: FeedSort = "recent",
    now: datetime | None = None,
) -> list[Post]:
    """Order posts for a feed.

    Args:
        posts: Candidate posts
        sort: ``recent`` (newest first), ``popular`` (most likes first) or
            ``trending`` (highest :func:`trending_score` first)
        now: Reference time for ``trending``

    Returns:
        A new, sorted list; ties keep their input order
    """
    if sort == "popular":
        return sorted(posts, key=lambda post: post.likes, reverse=True)
    if sort == "trending":
        if now is None:
            raise ValueError("trending ranking needs a reference time")
        return sorted(posts, key=lambda post: trending_score(post, now), reverse=True)
    return sorted(posts, key=lambda post: post.created_at, reverse=True)


def paginate(posts: Sequence[Post], page: int = 1, page_size: int = 10) -> FeedPage:
    """Slice page ``page`` (1-based) out of an already ranked list.

    ``has_more`` is true whenever the page came back full, matching the
    infinite-scroll behaviour of the web client.
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    start = (page - 1) * page_size
    items = list(posts[start : start + page_size])
    return FeedPage(
        items=items,
        page=page,
        page_size=page_size,
        total=len(posts),
        has_more=len(items) == page_size,
    )


async def get_home_feed(
    ctx: ServiceContext,
    sort: FeedSort = "recent",
    page: int = 1,
    page_size: int | None = None,
) -> FeedPage:
    """Rank every post and return one page of the home feed."""
    ranked = rank_posts(await get_posts(ctx), sort, now=ctx.now())
    return paginate(ranked, page, page_size or ctx.settings.feed_page_size)


async def get_following_feed(
    ctx: ServiceContext,
    user_id: str,
    sort: FeedSort = "recent",
    page: int = 1,
    page_size: int | None = None,
) -> FeedPage:
    """Rank the posts of followed users and return one page."""
    ranked = rank_posts(await get_following_posts(ctx, user_id), sort, now=ctx.now())
    return paginate(ranked, page, page_size or ctx.settings.feed_page_size)


async def get_suggested_users(
    ctx: ServiceContext,
    user_id: str,
    count: int | None = None,
) -> list[UserProfile]:
    """Suggest the authors of the most recent posts, excluding ``user_id``."""
    limit = count if count is not None else ctx.settings.suggested_users_count
    if limit <= 0:
        return []
    author_ids: list[str] = []
    for post in await get_posts(ctx):
        if post.author_id != user_id and post.author_id not in author_ids:
            author_ids.append(post.author_id)
        if len(author_ids) >= limit:
            break
    if not author_ids:
        return []
    snapshots = await ctx.store.get_many(USERS, author_ids)
    return [UserProfile.from_snapshot(snapshot) for snapshot in snapshots if snapshot.exists]
