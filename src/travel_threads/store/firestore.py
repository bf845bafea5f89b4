"""Google Cloud Firestore backend for the document store contract."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from google.api_core import exceptions as gcloud_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter as FirestoreFieldFilter

from travel_threads.errors import NotFoundError, StoreError
from travel_threads.store.base import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    DocumentSnapshot,
    DocumentStore,
    Increment,
    Query,
    Write,
    WriteBatch,
)

logger = logging.getLogger(__name__)

# Firestore spells the array operators with underscores.
_OPERATORS: dict[str, str] = {
    "array-contains": "array_contains",
    "array-contains-any": "array_contains_any",
}


def to_firestore_value(value: Any) -> Any:
    """Translate store transforms into their Firestore sentinels, recursively."""
    if value is DELETE_FIELD:
        return firestore.DELETE_FIELD
    if isinstance(value, Increment):
        return firestore.Increment(value.amount)
    if isinstance(value, ArrayUnion):
        return firestore.ArrayUnion(value.values)
    if isinstance(value, ArrayRemove):
        return firestore.ArrayRemove(value.values)
    if isinstance(value, dict):
        return {key: to_firestore_value(nested) for key, nested in value.items()}
    return value


class FirestoreDocumentStore(DocumentStore):
    """Document store that delegates to ``google.cloud.firestore.AsyncClient``.

    Args:
        client: An async Firestore client
        batch_limit: Maximum writes per committed Firestore batch
    """

    def __init__(self, client: firestore.AsyncClient, batch_limit: int = 500) -> None:
        self._client = client
        self._batch_limit = batch_limit

    @classmethod
    def from_settings(
        cls,
        project: str | None,
        database: str | None,
        batch_limit: int = 500,
    ) -> FirestoreDocumentStore:
        """Build a store with a client for ``project``/``database``."""
        kwargs: dict[str, Any] = {}
        if project:
            kwargs["project"] = project
        if database:
            kwargs["database"] = database
        return cls(firestore.AsyncClient(**kwargs), batch_limit=batch_limit)

    def _document(self, collection: str, doc_id: str) -> Any:
        return self._client.collection(collection).document(doc_id)

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        try:
            snapshot = await self._document(collection, doc_id).get()
        except gcloud_exceptions.GoogleAPIError as exc:
            raise StoreError(f"Failed to read {collection}/{doc_id}") from exc
        return DocumentSnapshot(collection, doc_id, snapshot.to_dict() if snapshot.exists else None)

    async def get_many(self, collection: str, doc_ids: Iterable[str]) -> list[DocumentSnapshot]:
        ids = list(doc_ids)
        if not ids:
            return []
        refs = [self._document(collection, doc_id) for doc_id in dict.fromkeys(ids)]
        found: dict[str, dict[str, Any]] = {}
        try:
            async for snapshot in self._client.get_all(refs):
                if snapshot.exists:
                    found[snapshot.id] = snapshot.to_dict()
        except gcloud_exceptions.GoogleAPIError as exc:
            raise StoreError(f"Failed to read {len(ids)} documents from {collection}") from exc
        return [DocumentSnapshot(collection, doc_id, found.get(doc_id)) for doc_id in ids]

    async def set(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        try:
            await self._document(collection, doc_id).set(to_firestore_value(data), merge=merge)
        except gcloud_exceptions.GoogleAPIError as exc:
            raise StoreError(f"Failed to write {collection}/{doc_id}") from exc

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        try:
            await self._document(collection, doc_id).update(to_firestore_value(data))
        except gcloud_exceptions.NotFound as exc:
            raise NotFoundError(collection, doc_id) from exc
        except gcloud_exceptions.GoogleAPIError as exc:
            raise StoreError(f"Failed to update {collection}/{doc_id}") from exc

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            await self._document(collection, doc_id).delete()
        except gcloud_exceptions.GoogleAPIError as exc:
            raise StoreError(f"Failed to delete {collection}/{doc_id}") from exc

    async def query(self, query: Query) -> list[DocumentSnapshot]:
        ref: Any = self._client.collection(query.collection)
        for flt in query.filters:
            ref = ref.where(
                filter=FirestoreFieldFilter(flt.field, _OPERATORS.get(flt.op, flt.op), flt.value)
            )
        for order in query.orders:
            direction = firestore.Query.DESCENDING if order.descending else firestore.Query.ASCENDING
            ref = ref.order_by(order.field, direction=direction)
        if query.limit is not None:
            ref = ref.limit(query.limit)
        try:
            return [
                DocumentSnapshot(query.collection, snapshot.id, snapshot.to_dict())
                async for snapshot in ref.stream()
            ]
        except gcloud_exceptions.GoogleAPIError as exc:
            raise StoreError(f"Failed to query {query.collection}") from exc

    async def commit(self, batch: WriteBatch) -> None:
        writes = batch.writes
        chunks = [
            writes[start : start + self._batch_limit]
            for start in range(0, len(writes), self._batch_limit)
        ]
        if len(chunks) > 1:
            logger.info("Splitting %d writes into %d Firestore batches", len(writes), len(chunks))
        for chunk in chunks:
            fs_batch = self._client.batch()
            for write in chunk:
                self._stage(fs_batch, write)
            try:
                await fs_batch.commit()
            except gcloud_exceptions.NotFound as exc:
                updates = [write for write in chunk if write.kind == "update"]
                if len(updates) == 1:
                    raise NotFoundError(updates[0].collection, updates[0].doc_id) from exc
                raise StoreError("Batch update referenced a missing document") from exc
            except gcloud_exceptions.GoogleAPIError as exc:
                raise StoreError(f"Failed to commit batch of {len(chunk)} writes") from exc

    def _stage(self, fs_batch: Any, write: Write) -> None:
        ref = self._document(write.collection, write.doc_id)
        if write.kind == "delete":
            fs_batch.delete(ref)
        elif write.kind == "set":
            fs_batch.set(ref, to_firestore_value(write.data or {}), merge=write.merge)
        else:
            fs_batch.update(ref, to_firestore_value(write.data or {}))

    async def close(self) -> None:
        self._client.close()
