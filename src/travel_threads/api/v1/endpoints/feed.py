# src/travel_threads/api/v1/endpoints/feed.py
"""Home, following and suggestion feeds."""

from fastapi import APIRouter, Query

from travel_threads.api.v1.dependencies import ContextDep, CurrentUserDep
from travel_threads.schemas.feed import FeedPage, FeedSort
from travel_threads.schemas.user import UserProfile
from travel_threads.services import feed

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("/", response_model=FeedPage)
async def home_feed(
    ctx: ContextDep,
    sort: FeedSort = Query("recent", description="recent, popular or trending"),
    page: int = Query(1, ge=1, description="1-based page number"),
    page_size: int | None = Query(None, ge=1, le=100, alias="pageSize"),
) -> FeedPage:
    """Return one page of all posts ranked by ``sort``."""
    return await feed.get_home_feed(ctx, sort, page, page_size)


@router.get("/following", response_model=FeedPage)
async def following_feed(
    current_user: CurrentUserDep,
    ctx: ContextDep,
    sort: FeedSort = Query("recent"),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=100, alias="pageSize"),
) -> FeedPage:
    """Return one page of posts by users the caller follows."""
    return await feed.get_following_feed(ctx, current_user.id, sort, page, page_size)


@router.get("/suggested-users", response_model=list[UserProfile])
async def suggested_users(
    current_user: CurrentUserDep,
    ctx: ContextDep,
    count: int | None = Query(None, ge=1, le=50),
) -> list[UserProfile]:
    """Suggest recent authors other than the caller."""
    return await feed.get_suggested_users(ctx, current_user.id, count)
