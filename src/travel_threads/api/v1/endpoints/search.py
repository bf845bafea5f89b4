# src/travel_threads/api/v1/endpoints/search.py
"""Post, user and place search."""

from fastapi import APIRouter, Query

from travel_threads.api.v1.dependencies import ContextDep
from travel_threads.schemas.post import Post
from travel_threads.schemas.user import UserProfile
from travel_threads.services import search

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/posts", response_model=list[Post])
async def search_posts(
    ctx: ContextDep,
    q: str = Query("", description="Substring of title or content"),
    location: str = Query("", description="Place name; split on commas and spaces"),
    only_with_location: bool = Query(False, alias="onlyWithLocation"),
) -> list[Post]:
    """Search posts by text and place."""
    return await search.search_posts(ctx, q, location, only_with_location)


@router.get("/users", response_model=list[UserProfile])
async def search_users(
    ctx: ContextDep,
    q: str = Query(..., min_length=1),
) -> list[UserProfile]:
    """Search users by name, bio or email."""
    return await search.search_users(ctx, q)


@router.get("/locations", response_model=list[str])
async def location_suggestions(
    ctx: ContextDep,
    q: str = Query("", description="Partially typed place name"),
) -> list[str]:
    """Suggest city names for place autocomplete."""
    return await search.get_location_suggestions(ctx, q)
