# src/travel_threads/store/__init__.py
"""Document store contract and backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    Increment,
    Order,
    Query,
    WriteBatch,
    new_document_id,
)
from .sql import SqlDocumentStore

if TYPE_CHECKING:
    from travel_threads.core.settings import Settings


def create_store(settings: Settings) -> DocumentStore:
    """Build the document store selected by ``settings.store_backend``."""
    if settings.store_backend == "firestore":
        from .firestore import FirestoreDocumentStore

        return FirestoreDocumentStore.from_settings(
            settings.firestore_project,
            settings.firestore_database,
            batch_limit=settings.firestore_batch_limit,
        )

    from travel_threads.db.session import SessionLocal

    return SqlDocumentStore(SessionLocal)


__all__ = [
    "ArrayRemove",
    "ArrayUnion",
    "DELETE_FIELD",
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
    "Increment",
    "Order",
    "Query",
    "SqlDocumentStore",
    "WriteBatch",
    "create_store",
    "new_document_id",
]
