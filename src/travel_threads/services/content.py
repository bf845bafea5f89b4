"""Posts, comments, shares and likes.

Counters on posts (``likes``, ``commentCount``, ``shareCount``) and on authors
(``threadCount``) are denormalized; each mutation that touches a counter and
another document commits both through one batch.
"""
from __future__ import annotations

import logging
from typing import Any

from travel_threads.errors import InvalidOperationError, NotFoundError
from travel_threads.schemas.post import (
    Comment,
    CommentCreate,
    LikeState,
    Post,
    PostCreate,
    PostUpdate,
    Share,
    ShareCreate,
)
from travel_threads.services.collections import COMMENTS, POSTS, SHARES, USERS
from travel_threads.services.context import ServiceContext
from travel_threads.services.location import derived_location_fields, location_changes
from travel_threads.services.notifications import notify
from travel_threads.store.base import ArrayRemove, ArrayUnion, Increment, Query, new_document_id

logger = logging.getLogger(__name__)

__all__ = [
    "create_post",
    "get_posts",
    "get_post",
    "get_user_posts",
    "update_post",
    "delete_post",
    "like_post",
    "unlike_post",
    "add_comment",
    "get_comment",
    "get_comments",
    "get_replies",
    "like_comment",
    "unlike_comment",
    "delete_comment",
    "share_post",
    "get_shares",
]


def _require(value: str | None, what: str) -> str:
    if not value:
        raise InvalidOperationError(f"{what} is required")
    return value


async def create_post(ctx: ServiceContext, data: PostCreate) -> str:
    """Persist a new post and increment the author's ``threadCount``.

    Args:
        ctx: Service context
        data: Post fields; ``author_id`` must be set

    Returns:
        The id of the new post

    Raises:
        InvalidOperationError: If no author is given
        NotFoundError: If the author has no profile document
    """
    author_id = _require(data.author_id, "authorId")
    document = data.to_document(exclude_none=True)
    if data.location is not None:
        document.update(derived_location_fields(data.location))
    document.update(
        likes=0,
        likedBy=[],
        commentCount=0,
        shareCount=0,
        createdAt=ctx.timestamp(),
    )

    post_id = new_document_id()
    batch = ctx.store.batch()
    batch.set(POSTS, post_id, document)
    batch.update(USERS, author_id, {"threadCount": Increment(1)})
    await batch.commit()
    logger.info("User %s created post %s", author_id, post_id)
    return post_id


async def get_posts(ctx: ServiceContext) -> list[Post]:
    """Return every post, newest first."""
    query = Query(POSTS).order_by("createdAt", descending=True)
    return [Post.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def get_post(ctx: ServiceContext, post_id: str) -> Post | None:
    """Return one post, or None if it does not exist."""
    snapshot = await ctx.store.get(POSTS, post_id)
    return Post.from_snapshot(snapshot) if snapshot.exists else None


async def get_user_posts(ctx: ServiceContext, author_id: str) -> list[Post]:
    """Return the posts written by ``author_id``, newest first."""
    query = (
        Query(POSTS)
        .where("authorId", "==", author_id)
        .order_by("createdAt", descending=True)
    )
    return [Post.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def update_post(ctx: ServiceContext, post_id: str, data: PostUpdate) -> None:
    """Merge the fields set on ``data`` into a post.

    Changing the location re-derives ``geopoint`` and ``locationKeywords``.

    Raises:
        NotFoundError: If the post does not exist
    """
    changes = data.to_document(exclude_unset=True)
    if "location" in data.model_fields_set:
        changes.update(location_changes(data.location))
    if not changes:
        return
    await ctx.store.update(POSTS, post_id, changes)


async def delete_post(ctx: ServiceContext, post_id: str) -> bool:
    """Delete a post together with its comments and shares.

    The author's ``threadCount`` is decremented in the same batch.

    Returns:
        False if the post did not exist
    """
    snapshot = await ctx.store.get(POSTS, post_id)
    if not snapshot.exists:
        return False

    comments = await ctx.store.query(Query(COMMENTS).where("postId", "==", post_id))
    shares = await ctx.store.query(Query(SHARES).where("postId", "==", post_id))

    batch = ctx.store.batch()
    author_id = snapshot.get("authorId")
    if author_id and (await ctx.store.get(USERS, author_id)).exists:
        batch.update(USERS, author_id, {"threadCount": Increment(-1)})
    for comment in comments:
        batch.delete(COMMENTS, comment.id)
    for share in shares:
        batch.delete(SHARES, share.id)
    batch.delete(POSTS, post_id)
    await batch.commit()
    logger.info(
        "Deleted post %s with %d comments and %d shares", post_id, len(comments), len(shares)
    )
    return True


async def _set_like(
    ctx: ServiceContext,
    collection: str,
    entity_id: str,
    user_id: str,
    liked: bool,
) -> tuple[LikeState, dict[str, Any], bool]:
    # Reading likedBy first keeps likes == len(likedBy) when a like repeats.
    snapshot = await ctx.store.get(collection, entity_id)
    if not snapshot.exists:
        raise NotFoundError(collection, entity_id)
    data = snapshot.data or {}
    likes = data.get("likes") or 0
    already = user_id in (data.get("likedBy") or [])
    if already == liked:
        return LikeState(entity_id=entity_id, likes=likes, liked=liked), data, False

    if liked:
        changes = {"likes": Increment(1), "likedBy": ArrayUnion(user_id)}
    else:
        changes = {"likes": Increment(-1), "likedBy": ArrayRemove(user_id)}
    await ctx.store.update(collection, entity_id, changes)
    state = LikeState(entity_id=entity_id, likes=likes + (1 if liked else -1), liked=liked)
    return state, data, True


async def like_post(ctx: ServiceContext, post_id: str, user_id: str) -> LikeState:
    """Like a post on behalf of ``user_id``; liking twice changes nothing.

    Raises:
        NotFoundError: If the post does not exist
    """
    state, post, changed = await _set_like(ctx, POSTS, post_id, user_id, True)
    author_id = post.get("authorId")
    if changed and author_id and author_id != user_id:
        title = post.get("title", "")
        await notify(
            ctx,
            author_id,
            "post_like",
            f'Someone liked your post "{title}"',
            actor_id=user_id,
            entity_id=post_id,
            entity_type="post",
            data={"preview": title},
        )
    return state


async def unlike_post(ctx: ServiceContext, post_id: str, user_id: str) -> LikeState:
    """Withdraw a like; unliking a post the user never liked changes nothing."""
    state, _, _ = await _set_like(ctx, POSTS, post_id, user_id, False)
    return state


async def like_comment(ctx: ServiceContext, comment_id: str, user_id: str) -> LikeState:
    """Like a comment on behalf of ``user_id``."""
    state, _, _ = await _set_like(ctx, COMMENTS, comment_id, user_id, True)
    return state


async def unlike_comment(ctx: ServiceContext, comment_id: str, user_id: str) -> LikeState:
    """Withdraw a like from a comment."""
    state, _, _ = await _set_like(ctx, COMMENTS, comment_id, user_id, False)
    return state


async def add_comment(ctx: ServiceContext, data: CommentCreate) -> str:
    """Add a comment (or a reply when ``parent_id`` is set) to a post.

    The comment and the post's ``commentCount`` increment commit together.
    The post author is notified, and for replies so is the parent comment's
    author; nobody is notified about their own comment.

    Raises:
        InvalidOperationError: If the post or author is missing from ``data``,
            or the parent comment belongs to another post
        NotFoundError: If the post or the parent comment does not exist
    """
    post_id = _require(data.post_id, "postId")
    author_id = _require(data.author_id, "authorId")
    post = await ctx.store.get(POSTS, post_id)
    if not post.exists:
        raise NotFoundError(POSTS, post_id)

    parent = None
    if data.parent_id:
        parent = await ctx.store.get(COMMENTS, data.parent_id)
        if not parent.exists:
            raise NotFoundError(COMMENTS, data.parent_id)
        if parent.get("postId") != post_id:
            raise InvalidOperationError(
                f"Comment {data.parent_id} does not belong to post {post_id}"
            )

    comment_id = new_document_id()
    batch = ctx.store.batch()
    batch.set(
        COMMENTS,
        comment_id,
        {
            "postId": post_id,
            "authorId": author_id,
            "content": data.content,
            "parentId": data.parent_id,
            "likes": 0,
            "likedBy": [],
            "createdAt": ctx.timestamp(),
        },
    )
    batch.update(POSTS, post_id, {"commentCount": Increment(1)})
    await batch.commit()

    preview = data.content[: ctx.settings.preview_length]
    post_author = post.get("authorId")
    if post_author and post_author != author_id:
        await notify(
            ctx,
            post_author,
            "post_comment",
            f'Someone commented on your post "{post.get("title", "")}"',
            actor_id=author_id,
            entity_id=post_id,
            entity_type="post",
            data={"preview": preview},
        )

    if parent is not None:
        parent_author = parent.get("authorId")
        if parent_author and parent_author != author_id:
            await notify(
                ctx,
                parent_author,
                "comment_reply",
                "Someone replied to your comment",
                actor_id=author_id,
                entity_id=post_id,
                entity_type="post",
                data={"preview": preview},
            )
    return comment_id


async def get_comment(ctx: ServiceContext, comment_id: str) -> Comment | None:
    """Return one comment, or None if it does not exist."""
    snapshot = await ctx.store.get(COMMENTS, comment_id)
    return Comment.from_snapshot(snapshot) if snapshot.exists else None


async def get_comments(ctx: ServiceContext, post_id: str) -> list[Comment]:
    """Return the top-level comments of a post, newest first."""
    query = (
        Query(COMMENTS)
        .where("postId", "==", post_id)
        .where("parentId", "==", None)
        .order_by("createdAt", descending=True)
    )
    return [Comment.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def get_replies(ctx: ServiceContext, comment_id: str) -> list[Comment]:
    """Return the replies to a comment, oldest first."""
    query = (
        Query(COMMENTS)
        .where("parentId", "==", comment_id)
        .order_by("createdAt")
    )
    return [Comment.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def delete_comment(ctx: ServiceContext, comment_id: str) -> bool:
    """Delete a comment and its replies, keeping the post's ``commentCount`` in step.

    Returns:
        False if the comment did not exist
    """
    snapshot = await ctx.store.get(COMMENTS, comment_id)
    if not snapshot.exists:
        return False
    replies = await ctx.store.query(Query(COMMENTS).where("parentId", "==", comment_id))

    batch = ctx.store.batch()
    batch.delete(COMMENTS, comment_id)
    for reply in replies:
        batch.delete(COMMENTS, reply.id)
    post_id = snapshot.get("postId")
    if post_id and (await ctx.store.get(POSTS, post_id)).exists:
        batch.update(POSTS, post_id, {"commentCount": Increment(-(1 + len(replies)))})
    await batch.commit()
    return True


async def share_post(ctx: ServiceContext, data: ShareCreate) -> str:
    """Record a share and increment the post's ``shareCount``.

    Raises:
        NotFoundError: If the post does not exist
    """
    post_id = _require(data.post_id, "postId")
    author_id = _require(data.author_id, "authorId")
    if not (await ctx.store.get(POSTS, post_id)).exists:
        raise NotFoundError(POSTS, post_id)
    share_id = new_document_id()
    document: dict[str, Any] = {
        "postId": post_id,
        "authorId": author_id,
        "createdAt": ctx.timestamp(),
    }
    if data.caption is not None:
        document["caption"] = data.caption

    batch = ctx.store.batch()
    batch.set(SHARES, share_id, document)
    batch.update(POSTS, post_id, {"shareCount": Increment(1)})
    await batch.commit()
    return share_id


async def get_shares(ctx: ServiceContext, post_id: str) -> list[Share]:
    """Return the shares of a post, newest first."""
    query = Query(SHARES).where("postId", "==", post_id).order_by("createdAt", descending=True)
    return [Share.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]
