"""Tests for post and user search."""

import httpx
import pytest

from travel_threads.schemas.common import Location
from travel_threads.schemas.post import PostCreate
from travel_threads.services import search
from travel_threads.services.content import create_post
from travel_threads.services.context import ServiceContext


@pytest.fixture()
def places() -> dict[str, Location]:
    return {
        "paris": Location(lat=48.85, lng=2.35, name="Paris, France"),
        "lyon": Location(lat=45.76, lng=4.83, name="Lyon, France"),
        "rome": Location(lat=41.9, lng=12.5, name="Rome, Italy"),
    }


@pytest.mark.asyncio
async def test_text_search_matches_title_or_content(ctx: ServiceContext, alice: str) -> None:
    croissant = await create_post(
        ctx, PostCreate(title="Best croissant", content="Found in a tiny bakery", author_id=alice)
    )
    bakery = await create_post(
        ctx, PostCreate(title="Morning walk", content="Another BAKERY stop", author_id=alice)
    )
    await create_post(ctx, PostCreate(title="Museum day", author_id=alice))

    assert [p.id for p in await search.search_posts(ctx, "bakery")] == [bakery, croissant]
    assert [p.id for p in await search.search_posts(ctx, "Croissant")] == [croissant]
    assert len(await search.search_posts(ctx)) == 3


@pytest.mark.asyncio
async def test_location_query_matches_any_piece(
    ctx: ServiceContext, alice: str, places: dict[str, Location]
) -> None:
    ids = {
        name: await create_post(ctx, PostCreate(title=name, author_id=alice, location=location))
        for name, location in places.items()
    }
    await create_post(ctx, PostCreate(title="nowhere", author_id=alice))

    in_france = await search.search_posts(ctx, location="Paris, France")
    assert [p.id for p in in_france] == [ids["lyon"], ids["paris"]]

    italy_or_lyon = await search.search_posts(ctx, location="italy lyon")
    assert [p.id for p in italy_or_lyon] == [ids["rome"], ids["lyon"]]


@pytest.mark.asyncio
async def test_only_with_location(
    ctx: ServiceContext, alice: str, places: dict[str, Location]
) -> None:
    located = await create_post(
        ctx, PostCreate(title="Eiffel tower", author_id=alice, location=places["paris"])
    )
    await create_post(ctx, PostCreate(title="Eiffel replica", author_id=alice))

    found = await search.search_posts(ctx, "eiffel", only_with_location=True)

    assert [p.id for p in found] == [located]


@pytest.mark.asyncio
async def test_search_users_is_reexported(ctx: ServiceContext, alice: str, bob: str) -> None:
    assert [u.id for u in await search.search_users(ctx, "BOB")] == [bob]


def _places_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_location_suggestions_return_city_descriptions(ctx: ServiceContext) -> None:
    ctx.settings.places_api_key = "places-key"
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        predictions = [{"description": "Paris, France"}, {"description": "Parma, Italy"}]
        return httpx.Response(200, json={"predictions": predictions})

    async with _places_client(handler) as client:
        suggestions = await search.get_location_suggestions(ctx, "par", client)

    assert suggestions == ["Paris, France", "Parma, Italy"]
    [request] = requests
    assert request.url.params["input"] == "par"
    assert request.url.params["types"] == "(cities)"
    assert request.url.params["key"] == "places-key"


@pytest.mark.asyncio
@pytest.mark.parametrize("partial", ["", "  ", "p", " p "])
async def test_short_input_has_no_suggestions(ctx: ServiceContext, partial: str) -> None:
    ctx.settings.places_api_key = "places-key"

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no lookup expected")

    async with _places_client(handler) as client:
        assert await search.get_location_suggestions(ctx, partial, client) == []


@pytest.mark.asyncio
async def test_lookup_failures_have_no_suggestions(ctx: ServiceContext) -> None:
    ctx.settings.places_api_key = "places-key"

    def unavailable(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    def garbled(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not json")

    for handler in (unavailable, unreachable, garbled):
        async with _places_client(handler) as client:
            assert await search.get_location_suggestions(ctx, "lisbon", client) == []


@pytest.mark.asyncio
async def test_suggestions_need_an_api_key(ctx: ServiceContext) -> None:
    assert ctx.settings.places_api_key is None
    assert await search.get_location_suggestions(ctx, "lisbon") == []
