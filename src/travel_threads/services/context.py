"""Explicit dependency bundle handed to every data-access function."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from travel_threads.core.settings import Settings
from travel_threads.db.time import to_timestamp, utcnow
from travel_threads.store.base import DocumentStore

if TYPE_CHECKING:
    from travel_threads.services.identity import LocalIdentityProvider
    from travel_threads.services.media import StorageClient


@dataclass
class ServiceContext:
    """Collaborators used by the service functions.

    Nothing in :mod:`travel_threads.services` reaches for a module-level
    backend handle; tests build a context around an in-memory store and a
    fixed clock.
    """

    store: DocumentStore
    settings: Settings
    storage: StorageClient | None = None
    identity: LocalIdentityProvider | None = None
    clock: Callable[[], datetime] = field(default=utcnow)

    def now(self) -> datetime:
        """Return the current time according to the context clock."""
        return self.clock()

    def timestamp(self) -> str:
        """Return the current time in stored-document form."""
        return to_timestamp(self.clock())
