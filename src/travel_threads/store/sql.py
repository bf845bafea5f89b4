"""Document store backed by a single SQLAlchemy JSON table.

Used for local development and tests. Each document is one row of
:class:`~travel_threads.models.document.StoredDocument`; filters, ordering and
field transforms are evaluated in process with :mod:`travel_threads.store.evaluate`,
and a write batch is one database transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from travel_threads.errors import NotFoundError, StoreError
from travel_threads.models.document import StoredDocument
from travel_threads.store.base import DocumentSnapshot, DocumentStore, Query, Write, WriteBatch
from travel_threads.store.evaluate import apply_set, apply_update, matches_all, sort_documents

logger = logging.getLogger(__name__)


class SqlDocumentStore(DocumentStore):
    """Thin wrapper around an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store with an async SQLAlchemy session factory."""
        self._session_factory = session_factory

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        try:
            async with self._session_factory() as session:
                row = await session.get(StoredDocument, (collection, doc_id))
                data = dict(row.data) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read {collection}/{doc_id}") from exc
        return DocumentSnapshot(collection, doc_id, data)

    async def get_many(self, collection: str, doc_ids: Iterable[str]) -> list[DocumentSnapshot]:
        ids = list(doc_ids)
        if not ids:
            return []
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoredDocument).where(
                        StoredDocument.collection == collection,
                        StoredDocument.doc_id.in_(set(ids)),
                    )
                )
                found = {row.doc_id: dict(row.data) for row in result.scalars()}
        except SQLAlchemyError as exc:
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
        await self.commit(self.batch().set(collection, doc_id, data, merge=merge))

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        await self.commit(self.batch().update(collection, doc_id, data))

    async def delete(self, collection: str, doc_id: str) -> None:
        await self.commit(self.batch().delete(collection, doc_id))

    async def query(self, query: Query) -> list[DocumentSnapshot]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(StoredDocument).where(StoredDocument.collection == query.collection)
                )
                rows = [(row.doc_id, dict(row.data)) for row in result.scalars()]
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to query {query.collection}") from exc

        candidates = [(doc_id, data) for doc_id, data in rows if matches_all(data, query.filters)]
        ordered = sort_documents(candidates, query.orders)
        if query.limit is not None:
            ordered = ordered[: query.limit]
        logger.debug(
            "Query on %s matched %d of %d documents", query.collection, len(ordered), len(rows)
        )
        return [DocumentSnapshot(query.collection, doc_id, data) for doc_id, data in ordered]

    async def commit(self, batch: WriteBatch) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                for write in batch.writes:
                    await self._apply(session, write)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to commit batch of {len(batch)} writes") from exc

    async def _apply(self, session: AsyncSession, write: Write) -> None:
        row = await session.get(StoredDocument, (write.collection, write.doc_id))
        if write.kind == "delete":
            if row is not None:
                await session.delete(row)
        elif write.kind == "set":
            if row is None:
                session.add(
                    StoredDocument(
                        collection=write.collection,
                        doc_id=write.doc_id,
                        data=apply_set(None, write.data or {}),
                    )
                )
            else:
                row.data = apply_set(row.data, write.data or {}, merge=write.merge)
        else:
            if row is None:
                raise NotFoundError(write.collection, write.doc_id)
            row.data = apply_update(row.data, write.data or {})
        # Later writes in the same batch must see this one.
        await session.flush()
