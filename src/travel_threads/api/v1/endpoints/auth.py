# src/travel_threads/api/v1/endpoints/auth.py
"""Email/password authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from travel_threads.api.v1.dependencies import ContextDep, bearer_scheme
from travel_threads.schemas.auth import Session, SignInRequest, SignUpRequest
from travel_threads.services.context import ServiceContext
from travel_threads.services.identity import LocalIdentityProvider

router = APIRouter(prefix="/auth", tags=["auth"])


def _identity(ctx: ServiceContext) -> LocalIdentityProvider:
    if ctx.identity is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured",
        )
    return ctx.identity


@router.post("/signup", response_model=Session, status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpRequest, ctx: ContextDep) -> Session:
    """Register an account and return a session for it."""
    return await _identity(ctx).sign_up(payload.email, payload.password, payload.display_name)


@router.post("/signin", response_model=Session)
async def sign_in(payload: SignInRequest, ctx: ContextDep) -> Session:
    """Exchange an email and password for a session."""
    return await _identity(ctx).sign_in(payload.email, payload.password)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    ctx: ContextDep,
) -> None:
    """Revoke the presented access token."""
    _identity(ctx).sign_out(credentials.credentials)
