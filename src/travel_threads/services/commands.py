"""Command/result wrapper for user-triggered mutations.

Callers that drive interactive state (the like and follow endpoints) run the
mutation through :func:`execute` and apply a single state transition from the
returned :class:`CommandResult`, instead of mutating local state first and
reverting it when the store call fails.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Generic, TypeVar

from travel_threads.errors import TravelThreadsError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CommandResult(Generic[T]):
    """Outcome of a mutation: either a value or the error that stopped it."""

    ok: bool
    value: T | None = None
    error: TravelThreadsError | None = None

    def unwrap(self) -> T:
        """Return the value, re-raising the captured error on failure."""
        if not self.ok:
            assert self.error is not None
            raise self.error
        return self.value  # type: ignore[return-value]


async def execute(operation: Awaitable[T]) -> CommandResult[T]:
    """Await ``operation`` and capture package errors in a :class:`CommandResult`.

    Args:
        operation: The pending mutation, e.g. ``like_post(ctx, post_id, user_id)``

    Returns:
        A successful result carrying the value, or a failed one carrying the error
    """
    try:
        value = await operation
    except TravelThreadsError as exc:
        logger.warning("Command failed: %s", exc)
        return CommandResult(ok=False, error=exc)
    return CommandResult(ok=True, value=value)


__all__ = ["CommandResult", "execute"]
