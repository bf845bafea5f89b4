"""Naive substring search over fetched posts and users, plus place autocomplete."""
from __future__ import annotations

import logging

import httpx

from travel_threads.schemas.post import Post
from travel_threads.services.collections import POSTS
from travel_threads.services.context import ServiceContext
from travel_threads.services.location import query_keywords
from travel_threads.services.social import search_users
from travel_threads.store.base import Query

logger = logging.getLogger(__name__)

__all__ = ["search_posts", "search_users", "get_location_suggestions"]

MIN_SUGGESTION_INPUT = 2


async def search_posts(
    ctx: ServiceContext,
    text: str = "",
    location: str = "",
    only_with_location: bool = False,
) -> list[Post]:
    """Filter posts by text and by location name.

    Args:
        ctx: Service context
        text: Substring matched against title or content, case-insensitively
        location: Free-form place query; split on commas and whitespace, a post
            matches when its location name contains any of the pieces
        only_with_location: Only consider posts that carry a geopoint

    Returns:
        Matching posts; newest first unless ``only_with_location`` is set, in
        which case the store's natural order is kept
    """
    if only_with_location:
        query = Query(POSTS).where("geopoint", "!=", None)
    else:
        query = Query(POSTS).order_by("createdAt", descending=True)
    posts = [Post.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]

    if text.strip():
        needle = text.lower()
        posts = [
            post
            for post in posts
            if needle in post.title.lower() or needle in post.content.lower()
        ]

    if location.strip():
        keywords = query_keywords(location)
        posts = [
            post
            for post in posts
            if post.location is not None
            and post.location.name
            and any(keyword in post.location.name.lower() for keyword in keywords)
        ]
    return posts


async def get_location_suggestions(
    ctx: ServiceContext,
    partial: str,
    client: httpx.AsyncClient | None = None,
) -> list[str]:
    """Suggest city names for a partially typed place.

    Suggestions come from the Google Places autocomplete endpoint restricted
    to cities. Lookup failures are logged and yield no suggestions.

    Args:
        ctx: Service context; supplies the API key, endpoint and timeout
        partial: What the user has typed so far
        client: HTTP client to use; a short-lived one is created when omitted

    Returns:
        Place descriptions in the order the provider ranks them, or an empty
        list for input shorter than two characters or without an API key
    """
    if len(partial.strip()) < MIN_SUGGESTION_INPUT:
        return []
    settings = ctx.settings
    if not settings.places_api_key:
        logger.debug("Place autocomplete is not configured")
        return []

    params = {"input": partial, "types": "(cities)", "key": settings.places_api_key}
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.places_timeout_seconds) as own:
                response = await own.get(settings.places_autocomplete_url, params=params)
        else:
            response = await client.get(settings.places_autocomplete_url, params=params)
        response.raise_for_status()
        predictions = response.json().get("predictions") or []
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Place autocomplete failed for %r: %s", partial, exc)
        return []
    return [p["description"] for p in predictions if p.get("description")]
