# mypy: ignore-errors
"""Tests for authentication endpoints."""

from __future__ import annotations

from fastapi import status

from conftest import signup


def test_signup_returns_session_and_profile(client) -> None:
    session = signup(client, "Maya@Example.com", "Maya")

    assert session["email"] == "maya@example.com"
    assert session["tokenType"] == "bearer"
    me = client.get("/api/v1/users/me", headers=session["headers"])
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["displayName"] == "Maya"
    assert me.json()["id"] == session["userId"]


def test_signup_errors_use_signup_messages(client) -> None:
    signup(client, "maya@example.com", "Maya")

    duplicate = client.post(
        "/api/v1/auth/signup",
        json={"email": "maya@example.com", "password": "secret123"},
    )
    assert duplicate.status_code == status.HTTP_400_BAD_REQUEST
    assert duplicate.json()["detail"] == "Email is already in use"

    bad_email = client.post(
        "/api/v1/auth/signup",
        json={"email": "maya.example.com", "password": "secret123"},
    )
    assert bad_email.json()["detail"] == "Invalid email address"

    weak = client.post(
        "/api/v1/auth/signup",
        json={"email": "kai@example.com", "password": "123"},
    )
    assert weak.json()["detail"] == "Password is too weak"


def test_signin(client) -> None:
    created = signup(client, "maya@example.com", "Maya")

    response = client.post(
        "/api/v1/auth/signin",
        json={"email": "maya@example.com", "password": "secret123"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["userId"] == created["userId"]


def test_signin_failures(client) -> None:
    signup(client, "maya@example.com", "Maya")

    unknown = client.post(
        "/api/v1/auth/signin",
        json={"email": "nobody@example.com", "password": "secret123"},
    )
    assert unknown.status_code == status.HTTP_401_UNAUTHORIZED
    assert unknown.json()["detail"] == "Invalid email or password"

    for _ in range(3):
        wrong = client.post(
            "/api/v1/auth/signin",
            json={"email": "maya@example.com", "password": "not-it"},
        )
        assert wrong.status_code == status.HTTP_401_UNAUTHORIZED

    locked = client.post(
        "/api/v1/auth/signin",
        json={"email": "maya@example.com", "password": "secret123"},
    )
    assert locked.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert locked.json()["detail"] == "Too many failed login attempts. Please try again later."


def test_signout_revokes_token(client) -> None:
    session = signup(client, "maya@example.com", "Maya")
    kai = signup(client, "kai@example.com", "Kai")

    response = client.post("/api/v1/auth/signout", headers=session["headers"])

    assert response.status_code == status.HTTP_204_NO_CONTENT
    me = client.get("/api/v1/users/me", headers=session["headers"])
    assert me.status_code == status.HTTP_401_UNAUTHORIZED
    still_signed_in = client.get("/api/v1/users/me", headers=kai["headers"])
    assert still_signed_in.json()["email"] == "kai@example.com"


def test_protected_endpoints_need_a_token(client) -> None:
    missing = client.get("/api/v1/users/me")
    assert missing.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    garbage = client.get("/api/v1/users/me", headers={"Authorization": "Bearer garbage"})
    assert garbage.status_code == status.HTTP_401_UNAUTHORIZED
    assert garbage.json()["detail"] == "Could not validate credentials"
