# mypy: ignore-errors
"""Tests for the search endpoints."""

from __future__ import annotations

from fastapi import status

from conftest import signup


def test_search_posts_by_text_and_place(client) -> None:
    maya = signup(client, "maya@example.com", "Maya")
    headers = maya["headers"]
    paris = client.post(
        "/api/v1/posts/",
        json={
            "title": "Louvre at dawn",
            "location": {"lat": 48.86, "lng": 2.34, "name": "Paris, France"},
        },
        headers=headers,
    ).json()
    client.post("/api/v1/posts/", json={"title": "Louvre replica in Vegas"}, headers=headers)

    by_text = client.get("/api/v1/search/posts", params={"q": "louvre"}).json()
    assert len(by_text) == 2

    by_place = client.get("/api/v1/search/posts", params={"location": "paris"}).json()
    assert [p["id"] for p in by_place] == [paris["id"]]

    located = client.get(
        "/api/v1/search/posts", params={"q": "louvre", "onlyWithLocation": "true"}
    ).json()
    assert [p["id"] for p in located] == [paris["id"]]


def test_search_users(client) -> None:
    maya = signup(client, "maya@example.com", "Maya")
    signup(client, "kai@example.com", "Kai")

    found = client.get("/api/v1/search/users", params={"q": "MAY"}).json()
    assert [u["id"] for u in found] == [maya["userId"]]

    assert client.get("/api/v1/search/users").status_code == 422


def test_location_suggestions_without_lookup(client, api_ctx) -> None:
    short = client.get("/api/v1/search/locations", params={"q": "p"})
    assert short.status_code == status.HTTP_200_OK
    assert short.json() == []

    assert api_ctx.settings.places_api_key is None
    assert client.get("/api/v1/search/locations", params={"q": "lisbon"}).json() == []
