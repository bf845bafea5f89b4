"""Shared Pydantic building blocks for stored records and API payloads."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, ClassVar, Self

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel

from travel_threads.db.time import parse_timestamp, to_timestamp
from travel_threads.store.base import DocumentSnapshot

# Stored as fixed-width ISO strings; parsed back into aware UTC datetimes.
Timestamp = Annotated[
    datetime,
    BeforeValidator(parse_timestamp),
    PlainSerializer(to_timestamp, return_type=str),
]


class CamelModel(BaseModel):
    """Base model whose fields are spelled in camelCase on the wire and in the store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self, **kwargs: Any) -> dict[str, Any]:
        """Dump the model as a camelCase document payload."""
        return self.model_dump(by_alias=True, **kwargs)


class PartialUpdate(CamelModel):
    """A partial update; unset fields are left untouched.

    Only the fields named in ``nullable_fields`` may be cleared with an
    explicit null.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_nulls(self) -> Self:
        cleared = sorted(
            name
            for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.nullable_fields
        )
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class Record(CamelModel):
    """A document read back from the store, carrying its id."""

    id: str

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> Self:
        """Build a record from an existing document snapshot."""
        if snapshot.data is None:
            raise ValueError(f"{snapshot.collection}/{snapshot.id} does not exist")
        return cls.model_validate({**snapshot.data, "id": snapshot.id})


class Location(CamelModel):
    """A named point chosen by the user."""

    lat: float
    lng: float
    name: str | None = None


class GeoPoint(CamelModel):
    """Coordinates derived from a location for map views."""

    latitude: float
    longitude: float


__all__ = ["CamelModel", "GeoPoint", "Location", "PartialUpdate", "Record", "Timestamp"]
