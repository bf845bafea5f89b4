# mypy: ignore-errors
"""Tests for the direct message endpoints."""

from __future__ import annotations

from fastapi import status

from conftest import signup


def _open(client, session, other) -> dict:
    response = client.post(
        "/api/v1/messages/conversations",
        json={"participantId": other["userId"]},
        headers=session["headers"],
    )
    assert response.status_code == status.HTTP_200_OK, response.text
    return response.json()


def test_open_conversation_is_idempotent(client) -> None:
    maya = signup(client, "maya@example.com", "Maya")
    kai = signup(client, "kai@example.com", "Kai")

    first = _open(client, maya, kai)
    second = _open(client, kai, maya)

    assert first["id"] == second["id"]
    assert first["participants"] == sorted([maya["userId"], kai["userId"]])
    assert first["lastMessage"] is None


def test_send_read_and_react(client) -> None:
    maya = signup(client, "maya@example.com", "Maya")
    kai = signup(client, "kai@example.com", "Kai")
    conversation = _open(client, maya, kai)
    url = f"/api/v1/messages/conversations/{conversation['id']}"

    sent = client.post(url, json={"text": "Ferry leaves at 9"}, headers=maya["headers"])
    assert sent.status_code == status.HTTP_201_CREATED
    message_id = sent.json()["id"]

    listed = client.get("/api/v1/messages/conversations", headers=kai["headers"]).json()
    assert listed[0]["lastMessage"]["text"] == "Ferry leaves at 9"
    assert listed[0]["lastMessage"]["read"] is False

    read = client.post(f"{url}/read", headers=kai["headers"])
    assert read.json() == {"updated": 1}
    messages = client.get(url, headers=kai["headers"]).json()
    assert [m["read"] for m in messages] == [True]

    reaction_url = f"/api/v1/messages/{message_id}/reaction"
    put = client.put(reaction_url, json={"emoji": "⛴️"}, headers=kai["headers"])
    assert put.status_code == status.HTTP_204_NO_CONTENT
    messages = client.get(url, headers=maya["headers"]).json()
    assert messages[0]["reactions"] == {kai["userId"]: "⛴️"}

    client.delete(reaction_url, headers=kai["headers"])
    assert client.get(url, headers=maya["headers"]).json()[0]["reactions"] == {}

    notes = client.get("/api/v1/notifications/", headers=kai["headers"]).json()
    assert [n["type"] for n in notes] == ["message_received"]


def test_outsiders_cannot_read_or_write(client) -> None:
    maya = signup(client, "maya@example.com", "Maya")
    kai = signup(client, "kai@example.com", "Kai")
    lea = signup(client, "lea@example.com", "Lea")
    conversation = _open(client, maya, kai)
    url = f"/api/v1/messages/conversations/{conversation['id']}"

    assert client.get(url, headers=lea["headers"]).status_code == status.HTTP_404_NOT_FOUND
    denied = client.post(url, json={"text": "hello"}, headers=lea["headers"])
    assert denied.status_code == status.HTTP_403_FORBIDDEN


def test_message_needs_content(client) -> None:
    maya = signup(client, "maya@example.com", "Maya")
    kai = signup(client, "kai@example.com", "Kai")
    conversation = _open(client, maya, kai)

    response = client.post(
        f"/api/v1/messages/conversations/{conversation['id']}",
        json={"text": ""},
        headers=maya["headers"],
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_conversation_with_self_is_rejected(client) -> None:
    maya = signup(client, "maya@example.com", "Maya")
    response = client.post(
        "/api/v1/messages/conversations",
        json={"participantId": maya["userId"]},
        headers=maya["headers"],
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
