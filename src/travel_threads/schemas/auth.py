"""Authentication request and response schemas."""
from __future__ import annotations

from pydantic import Field

from .common import CamelModel


class SignUpRequest(CamelModel):
    """Schema for email/password registration."""

    email: str = Field(..., description="Account email address")
    password: str = Field(..., description="Plain-text password, hashed before storage")
    display_name: str = Field("", max_length=100, description="Optional public name")


class SignInRequest(CamelModel):
    """Schema for email/password login."""

    email: str
    password: str


class Session(CamelModel):
    """An authenticated session returned after sign-up or sign-in."""

    user_id: str = Field(..., description="Id of the signed-in user")
    email: str
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")
