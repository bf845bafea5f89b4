"""Pure helpers that evaluate queries and field transforms against plain dicts.

Backends that cannot push queries down to the database (the SQL document
store) use these to reproduce Firestore semantics in process.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Sequence
from typing import Any, Final

from travel_threads.store.base import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    FieldFilter,
    Increment,
    Order,
)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


def get_field(data: dict[str, Any], path: str) -> Any:
    """Resolve a dotted field path, returning ``MISSING`` when absent."""
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return MISSING
        current = current[part]
    return current


def _type_rank(value: Any) -> int:
    # Firestore's cross-type ordering: null < booleans < numbers < strings < others.
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, int | float):
        return 2
    if isinstance(value, str):
        return 3
    return 4


def sort_key(value: Any) -> tuple[int, Any]:
    """Return a key that orders mixed-type values the way Firestore does."""
    rank = _type_rank(value)
    if rank == 0:
        return (0, 0)
    if rank == 4:
        return (4, repr(value))
    return (rank, value)


def _comparable(left: Any, right: Any) -> bool:
    return left is not None and right is not None and _type_rank(left) == _type_rank(right) != 4


def matches(data: dict[str, Any], flt: FieldFilter) -> bool:
    """Return True when ``data`` satisfies a single filter."""
    value = get_field(data, flt.field)
    if value is MISSING:
        return False
    target = flt.value
    op = flt.op
    if op == "==":
        return value == target
    if op == "!=":
        return value != target
    if op in ("<", "<=", ">", ">="):
        if not _comparable(value, target):
            return False
        if op == "<":
            return value < target
        if op == "<=":
            return value <= target
        if op == ">":
            return value > target
        return value >= target
    if op == "in":
        return value in list(target)
    if op == "not-in":
        return value is not None and value not in list(target)
    if op == "array-contains":
        return isinstance(value, list) and target in value
    if op == "array-contains-any":
        return isinstance(value, list) and any(item in value for item in target)
    raise ValueError(f"Unsupported filter operator: {op!r}")


def matches_all(data: dict[str, Any], filters: Iterable[FieldFilter]) -> bool:
    return all(matches(data, flt) for flt in filters)


def sort_documents(
    documents: Sequence[tuple[str, dict[str, Any]]],
    orders: Sequence[Order],
) -> list[tuple[str, dict[str, Any]]]:
    """Order ``(id, data)`` pairs, dropping documents that lack an order field.

    Without explicit orders, documents come back sorted by id.
    """
    if not orders:
        return sorted(documents, key=lambda item: item[0])
    kept = [
        item
        for item in documents
        if all(get_field(item[1], order.field) is not MISSING for order in orders)
    ]
    kept.sort(key=lambda item: item[0])
    for order in reversed(orders):
        kept.sort(
            key=lambda item, f=order.field: sort_key(get_field(item[1], f)),
            reverse=order.descending,
        )
    return kept


def _resolve(current: Any, value: Any) -> Any:
    if isinstance(value, Increment):
        base = current if isinstance(current, int | float) and not isinstance(current, bool) else 0
        return base + value.amount
    if isinstance(value, ArrayUnion):
        result = list(current) if isinstance(current, list) else []
        for item in value.values:
            if item not in result:
                result.append(item)
        return result
    if isinstance(value, ArrayRemove):
        if not isinstance(current, list):
            return []
        return [item for item in current if item not in value.values]
    if isinstance(value, dict):
        return {key: _resolve(MISSING, nested) for key, nested in value.items()
                if nested is not DELETE_FIELD}
    return copy.deepcopy(value)


def _merge_into(target: dict[str, Any], updates: dict[str, Any]) -> None:
    for key, value in updates.items():
        if value is DELETE_FIELD:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_into(target[key], value)
        else:
            target[key] = _resolve(target.get(key, MISSING), value)


def apply_set(
    existing: dict[str, Any] | None,
    data: dict[str, Any],
    *,
    merge: bool = False,
) -> dict[str, Any]:
    """Return the document produced by ``set(data, merge=merge)``."""
    if merge and existing is not None:
        result = copy.deepcopy(existing)
        _merge_into(result, data)
        return result
    fresh: dict[str, Any] = {}
    _merge_into(fresh, data)
    return fresh


def apply_update(existing: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Return the document produced by ``update(updates)``.

    Keys are dotted field paths; intermediate maps are created as needed and a
    map value replaces the whole field rather than merging into it.
    """
    result = copy.deepcopy(existing)
    for path, value in updates.items():
        parts = path.split(".")
        parent = result
        for part in parts[:-1]:
            child = parent.get(part)
            if not isinstance(child, dict):
                child = {}
                parent[part] = child
            parent = child
        leaf = parts[-1]
        if value is DELETE_FIELD:
            parent.pop(leaf, None)
        else:
            parent[leaf] = _resolve(parent.get(leaf, MISSING), value)
    return result
