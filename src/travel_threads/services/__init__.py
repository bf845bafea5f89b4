# src/travel_threads/services/__init__.py
"""Data-access and feed-composition services for Travel Threads.

Each submodule exposes plain ``async`` functions taking a
:class:`ServiceContext` as their first argument.
"""

from .commands import CommandResult, execute
from .context import ServiceContext
from .identity import LocalIdentityProvider, user_message
from .media import InMemoryStorageClient, S3StorageClient, StorageClient, create_storage

__all__ = [
    "CommandResult",
    "execute",
    "ServiceContext",
    "LocalIdentityProvider",
    "user_message",
    "StorageClient",
    "InMemoryStorageClient",
    "S3StorageClient",
    "create_storage",
]
