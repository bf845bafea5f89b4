# src/travel_threads/api/v1/endpoints/users.py
"""User profile and follow-graph endpoints."""

from fastapi import APIRouter, HTTPException, status

from travel_threads.api.v1.dependencies import ContextDep, CurrentUserDep, to_http_exception
from travel_threads.schemas.event import Event
from travel_threads.schemas.user import FollowState, ProfileCreate, ProfileUpdate, UserProfile
from travel_threads.services import events, social
from travel_threads.services.commands import execute

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfile)
async def read_me(current_user: CurrentUserDep) -> UserProfile:
    """Return the authenticated user's profile."""
    return current_user


@router.put("/me", response_model=UserProfile)
async def create_my_profile(
    payload: ProfileCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> UserProfile:
    """Fill in the caller's profile, keeping follow lists and counters."""
    return await social.create_user_profile(ctx, current_user.id, payload)


@router.patch("/me", response_model=UserProfile)
async def update_my_profile(
    payload: ProfileUpdate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> UserProfile:
    """Update the caller's display name, bio or photo."""
    await social.update_user_profile(ctx, current_user.id, payload)
    profile = await social.find_user_profile(ctx, current_user.id)
    assert profile is not None
    return profile


@router.get("/{user_id}", response_model=UserProfile)
async def read_user(user_id: str, ctx: ContextDep) -> UserProfile:
    """Fetch a public profile."""
    profile = await social.find_user_profile(ctx, user_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return profile


@router.get("/{user_id}/followers", response_model=list[UserProfile])
async def list_followers(user_id: str, ctx: ContextDep) -> list[UserProfile]:
    """List the profiles following a user."""
    return await social.get_followers(ctx, user_id)


@router.get("/{user_id}/following", response_model=list[UserProfile])
async def list_following(user_id: str, ctx: ContextDep) -> list[UserProfile]:
    """List the profiles a user follows."""
    return await social.get_following(ctx, user_id)


@router.get("/{user_id}/events", response_model=list[Event])
async def list_user_events(user_id: str, ctx: ContextDep) -> list[Event]:
    """List the events organized by a user."""
    return await events.get_user_events(ctx, user_id)


@router.post("/{user_id}/follow", response_model=FollowState)
async def follow(user_id: str, current_user: CurrentUserDep, ctx: ContextDep) -> FollowState:
    """Follow a user."""
    result = await execute(social.follow_user(ctx, current_user.id, user_id))
    if not result.ok:
        assert result.error is not None
        raise to_http_exception(result.error) from result.error
    return result.unwrap()


@router.delete("/{user_id}/follow", response_model=FollowState)
async def unfollow(user_id: str, current_user: CurrentUserDep, ctx: ContextDep) -> FollowState:
    """Stop following a user."""
    result = await execute(social.unfollow_user(ctx, current_user.id, user_id))
    if not result.ok:
        assert result.error is not None
        raise to_http_exception(result.error) from result.error
    return result.unwrap()
