# src/travel_threads/api/v1/endpoints/posts.py
"""Post, comment, like and share endpoints for the Travel Threads API."""

from fastapi import APIRouter, HTTPException, status

from travel_threads.api.v1.dependencies import ContextDep, CurrentUserDep, to_http_exception
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
from travel_threads.schemas.user import UserProfile
from travel_threads.services import content
from travel_threads.services.commands import CommandResult, execute
from travel_threads.services.context import ServiceContext

router = APIRouter(prefix="/posts", tags=["posts"])


async def _load_post(ctx: ServiceContext, post_id: str) -> Post:
    post = await content.get_post(ctx, post_id)
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return post


def _check_owner(author_id: str, user: UserProfile) -> None:
    if author_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author can change this",
        )


def _like_state(result: CommandResult[LikeState]) -> LikeState:
    if not result.ok:
        assert result.error is not None
        raise to_http_exception(result.error) from result.error
    return result.unwrap()


@router.get("/", response_model=list[Post])
async def list_posts(ctx: ContextDep) -> list[Post]:
    """List every post, newest first."""
    return await content.get_posts(ctx)


@router.post("/", response_model=Post, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> Post:
    """Publish a post as the authenticated user."""
    data = payload.model_copy(update={"author_id": current_user.id})
    post_id = await content.create_post(ctx, data)
    return await _load_post(ctx, post_id)


@router.get("/user/{author_id}", response_model=list[Post])
async def list_user_posts(author_id: str, ctx: ContextDep) -> list[Post]:
    """List the posts written by one user, newest first."""
    return await content.get_user_posts(ctx, author_id)


@router.get("/{post_id}", response_model=Post)
async def get_post(post_id: str, ctx: ContextDep) -> Post:
    """Fetch a single post."""
    return await _load_post(ctx, post_id)


@router.patch("/{post_id}", response_model=Post)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> Post:
    """Edit a post. Only its author (or an admin) may do so."""
    post = await _load_post(ctx, post_id)
    _check_owner(post.author_id, current_user)
    await content.update_post(ctx, post_id, payload)
    return await _load_post(ctx, post_id)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> None:
    """Delete a post with its comments and shares."""
    post = await _load_post(ctx, post_id)
    _check_owner(post.author_id, current_user)
    await content.delete_post(ctx, post_id)


@router.post("/{post_id}/like", response_model=LikeState)
async def like_post(post_id: str, current_user: CurrentUserDep, ctx: ContextDep) -> LikeState:
    """Like a post."""
    return _like_state(await execute(content.like_post(ctx, post_id, current_user.id)))


@router.delete("/{post_id}/like", response_model=LikeState)
async def unlike_post(post_id: str, current_user: CurrentUserDep, ctx: ContextDep) -> LikeState:
    """Remove the authenticated user's like from a post."""
    return _like_state(await execute(content.unlike_post(ctx, post_id, current_user.id)))


@router.get("/{post_id}/comments", response_model=list[Comment])
async def list_comments(post_id: str, ctx: ContextDep) -> list[Comment]:
    """List the top-level comments of a post, newest first."""
    return await content.get_comments(ctx, post_id)


@router.post(
    "/{post_id}/comments",
    response_model=Comment,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: str,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> Comment:
    """Comment on a post, or reply to a comment when ``parentId`` is set."""
    data = payload.model_copy(update={"post_id": post_id, "author_id": current_user.id})
    comment_id = await content.add_comment(ctx, data)
    comment = await content.get_comment(ctx, comment_id)
    assert comment is not None
    return comment


@router.get("/comments/{comment_id}/replies", response_model=list[Comment])
async def list_replies(comment_id: str, ctx: ContextDep) -> list[Comment]:
    """List the replies to a comment, oldest first."""
    return await content.get_replies(ctx, comment_id)


@router.post("/comments/{comment_id}/like", response_model=LikeState)
async def like_comment(
    comment_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> LikeState:
    """Like a comment."""
    return _like_state(await execute(content.like_comment(ctx, comment_id, current_user.id)))


@router.delete("/comments/{comment_id}/like", response_model=LikeState)
async def unlike_comment(
    comment_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> LikeState:
    """Remove the authenticated user's like from a comment."""
    return _like_state(await execute(content.unlike_comment(ctx, comment_id, current_user.id)))


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> None:
    """Delete a comment and its replies."""
    comment = await content.get_comment(ctx, comment_id)
    if comment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found",
        )
    _check_owner(comment.author_id, current_user)
    await content.delete_comment(ctx, comment_id)


@router.get("/{post_id}/shares", response_model=list[Share])
async def list_shares(post_id: str, ctx: ContextDep) -> list[Share]:
    """List the shares of a post, newest first."""
    return await content.get_shares(ctx, post_id)


@router.post(
    "/{post_id}/shares",
    status_code=status.HTTP_201_CREATED,
)
async def share_post(
    post_id: str,
    payload: ShareCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> dict[str, str]:
    """Share a post."""
    data = payload.model_copy(update={"post_id": post_id, "author_id": current_user.id})
    share_id = await content.share_post(ctx, data)
    return {"id": share_id}
