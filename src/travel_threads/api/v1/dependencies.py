"""Shared API dependencies for authentication and error translation."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from travel_threads.errors import (
    IdentityError,
    InvalidOperationError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    StoreError,
    TravelThreadsError,
)
from travel_threads.schemas.user import UserProfile
from travel_threads.services.collections import USERS
from travel_threads.services.context import ServiceContext
from travel_threads.services.identity import (
    EMAIL_ALREADY_IN_USE,
    INVALID_EMAIL,
    INVALID_TOKEN,
    TOO_MANY_REQUESTS,
    USER_NOT_FOUND,
    WEAK_PASSWORD,
    WRONG_PASSWORD,
    user_message,
)

logger = logging.getLogger(__name__)

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

_SIGNUP_CODES = {EMAIL_ALREADY_IN_USE, INVALID_EMAIL, WEAK_PASSWORD}
_UNAUTHORIZED_CODES = {USER_NOT_FOUND, WRONG_PASSWORD, INVALID_TOKEN}


def get_context(request: Request) -> ServiceContext:
    """Return the service context created at application start-up.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    ctx: ServiceContext | None = getattr(request.app.state, "context", None)
    if ctx is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return ctx


# Type alias for service context dependency
ContextDep = Annotated[ServiceContext, Depends(get_context)]


def to_http_exception(exc: TravelThreadsError) -> HTTPException:
    """Translate a package error into the HTTP error returned to clients."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, InvalidOperationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, IdentityError):
        context = "signup" if exc.code in _SIGNUP_CODES else "login"
        if exc.code == TOO_MANY_REQUESTS:
            code = status.HTTP_429_TOO_MANY_REQUESTS
        elif exc.code in _UNAUTHORIZED_CODES:
            code = status.HTTP_401_UNAUTHORIZED
        else:
            code = status.HTTP_400_BAD_REQUEST
        return HTTPException(status_code=code, detail=user_message(exc.code, context))
    if isinstance(exc, (StoreError, StorageError)):
        logger.error("Backend failure: %s", exc)
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service temporarily unavailable",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    ctx: ContextDep,
) -> UserProfile:
    """Get the current authenticated user from the bearer token.

    Args:
        credentials: HTTP Bearer token credentials
        ctx: Service context

    Returns:
        Profile of the authenticated user

    Raises:
        HTTPException: If the token is invalid, the user has no profile or the
            account is blocked
    """
    if ctx.identity is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured",
        )
    try:
        user_id = ctx.identity.verify_token(credentials.credentials)
    except IdentityError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    snapshot = await ctx.store.get(USERS, user_id)
    if not snapshot.exists:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    user = UserProfile.from_snapshot(snapshot)
    if user.is_blocked:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is blocked",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[UserProfile, Depends(get_current_user)]


def require_admin(current_user: CurrentUserDep) -> UserProfile:
    """Allow only administrators through.

    Raises:
        HTTPException: 403 for non-admin users
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return current_user


AdminUserDep = Annotated[UserProfile, Depends(require_admin)]
