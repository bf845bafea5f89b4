# src/travel_threads/errors.py
"""Exception hierarchy shared by the store adapters and services."""

from __future__ import annotations


class TravelThreadsError(RuntimeError):
    """Base exception for every failure raised by this package."""


class StoreError(TravelThreadsError):
    """Raised when the remote document store rejects or fails an operation.

    Backend-specific exceptions are wrapped in this type so callers never have
    to import SQLAlchemy or Google client errors.
    """


class NotFoundError(StoreError):
    """Raised when a document required by an operation does not exist."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class StorageError(TravelThreadsError):
    """Raised when the object storage rejects or fails an upload."""


class InvalidOperationError(TravelThreadsError):
    """Raised when a request is well-formed but not allowed in this state."""


class InvalidTransitionError(InvalidOperationError):
    """Raised when a status field would move backwards."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move from {current!r} to {requested!r}")
        self.current = current
        self.requested = requested


class PermissionDeniedError(TravelThreadsError):
    """Raised when the acting user may not perform an operation."""


class IdentityError(TravelThreadsError):
    """Raised by the identity provider with a stable error code.

    Codes use the ``auth/<reason>`` form, for example ``auth/wrong-password``.
    """

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(message or code)
        self.code = code


__all__ = [
    "TravelThreadsError",
    "StoreError",
    "NotFoundError",
    "StorageError",
    "InvalidOperationError",
    "InvalidTransitionError",
    "PermissionDeniedError",
    "IdentityError",
]
