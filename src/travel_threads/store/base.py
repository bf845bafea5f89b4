"""Document store contract used by every data-access function.

The store is an external collaborator: collections of schemaless documents,
field-filtered queries with ordering and limits, atomic field transforms and
batched writes. Backends implement :class:`DocumentStore`; services only ever
see the types defined here.
"""

from __future__ import annotations

import secrets
import string
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any, Final, Literal

FilterOp = Literal[
    "==",
    "!=",
    "<",
    "<=",
    ">",
    ">=",
    "in",
    "not-in",
    "array-contains",
    "array-contains-any",
]

FILTER_OPS: Final[frozenset[str]] = frozenset(
    ["==", "!=", "<", "<=", ">", ">=", "in", "not-in", "array-contains", "array-contains-any"]
)

_ID_ALPHABET: Final[str] = string.ascii_letters + string.digits
_ID_LENGTH: Final[int] = 20


def new_document_id() -> str:
    """Return a random 20-character alphanumeric document id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


class Increment:
    """Atomically add ``amount`` to a numeric field (missing counts as zero)."""

    __slots__ = ("amount",)

    def __init__(self, amount: int | float = 1) -> None:
        self.amount = amount

    def __repr__(self) -> str:
        return f"Increment({self.amount!r})"


class ArrayUnion:
    """Atomically append values that are not already present in an array field."""

    __slots__ = ("values",)

    def __init__(self, *values: Any) -> None:
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayUnion({', '.join(map(repr, self.values))})"


class ArrayRemove:
    """Atomically remove every occurrence of the given values from an array field."""

    __slots__ = ("values",)

    def __init__(self, *values: Any) -> None:
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayRemove({', '.join(map(repr, self.values))})"


class _DeleteField:
    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD: Final = _DeleteField()


@dataclass(frozen=True)
class FieldFilter:
    """A single ``field op value`` predicate."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")


@dataclass(frozen=True)
class Order:
    """Sort key for a query."""

    field: str
    descending: bool = False


@dataclass(frozen=True)
class Query:
    """Immutable query description, built fluently.

    Example:
        Query("posts").where("authorId", "==", uid).order_by("createdAt", descending=True)
    """

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    orders: tuple[Order, ...] = ()
    limit: int | None = None

    def where(self, field_path: str, op: FilterOp, value: Any) -> Query:
        """Return a copy with an additional filter."""
        return replace(self, filters=(*self.filters, FieldFilter(field_path, op, value)))

    def order_by(self, field_path: str, *, descending: bool = False) -> Query:
        """Return a copy with an additional sort key."""
        return replace(self, orders=(*self.orders, Order(field_path, descending)))

    def limit_to(self, count: int) -> Query:
        """Return a copy capped at ``count`` documents."""
        if count < 0:
            raise ValueError("limit must be non-negative")
        return replace(self, limit=count)


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as read from the store; ``data`` is None when it does not exist."""

    collection: str
    id: str
    data: dict[str, Any] | None

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any] | None:
        """Return a shallow copy of the payload, or None for a missing document."""
        return dict(self.data) if self.data is not None else None

    def get(self, field_path: str, default: Any = None) -> Any:
        """Return a top-level field value from the payload."""
        if self.data is None:
            return default
        return self.data.get(field_path, default)


WriteKind = Literal["set", "update", "delete"]


@dataclass(frozen=True)
class Write:
    """One pending mutation inside a :class:`WriteBatch`."""

    kind: WriteKind
    collection: str
    doc_id: str
    data: dict[str, Any] | None = None
    merge: bool = False


@dataclass
class WriteBatch:
    """Collects writes that the store commits atomically."""

    store: DocumentStore
    writes: list[Write] = field(default_factory=list)

    def set(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        merge: bool = False,
    ) -> WriteBatch:
        self.writes.append(Write("set", collection, doc_id, dict(data), merge))
        return self

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> WriteBatch:
        self.writes.append(Write("update", collection, doc_id, dict(data)))
        return self

    def delete(self, collection: str, doc_id: str) -> WriteBatch:
        self.writes.append(Write("delete", collection, doc_id))
        return self

    def __len__(self) -> int:
        return len(self.writes)

    async def commit(self) -> None:
        """Commit every collected write; an empty batch is a no-op."""
        if self.writes:
            await self.store.commit(self)


class DocumentStore(ABC):
    """Abstract document store.

    Query semantics follow Firestore: a document that lacks a filtered or
    ordered field never matches that query. ``update`` accepts dotted field
    paths and transform values; it fails with ``NotFoundError`` when the
    document does not exist. All backend failures surface as ``StoreError``.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Read one document."""

    @abstractmethod
    async def get_many(self, collection: str, doc_ids: Iterable[str]) -> list[DocumentSnapshot]:
        """Read several documents in one round trip, preserving input order."""

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a generated id and return the id."""
        doc_id = new_document_id()
        await self.set(collection, doc_id, data)
        return doc_id

    @abstractmethod
    async def set(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        """Create or overwrite a document (deep-merging when ``merge`` is set)."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Apply field updates and transforms to an existing document."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""

    @abstractmethod
    async def query(self, query: Query) -> list[DocumentSnapshot]:
        """Run a query and return the matching documents."""

    @abstractmethod
    async def commit(self, batch: WriteBatch) -> None:
        """Apply every write in ``batch`` atomically."""

    def batch(self) -> WriteBatch:
        """Start a new write batch bound to this store."""
        return WriteBatch(self)

    async def close(self) -> None:
        """Release backend resources."""


__all__ = [
    "ArrayRemove",
    "ArrayUnion",
    "DELETE_FIELD",
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
    "FilterOp",
    "Increment",
    "Order",
    "Query",
    "Write",
    "WriteBatch",
    "new_document_id",
]
