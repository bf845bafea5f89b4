"""Event schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, model_validator

from .common import CamelModel, GeoPoint, Location, PartialUpdate, Record, Timestamp

EventCategory = Literal[
    "travel",
    "food",
    "culture",
    "adventure",
    "nature",
    "workshop",
    "meetup",
    "festival",
    "concert",
    "sports",
    "other",
]


class Event(Record):
    """An event document with its attendee and interested-user sets."""

    title: str = ""
    description: str = ""
    start_date: Timestamp
    end_date: Timestamp
    location: Location | None = None
    geopoint: GeoPoint | None = None
    location_keywords: list[str] | None = None
    category: EventCategory = "other"
    is_public: bool = True
    max_attendees: int | None = None
    price: float | None = None
    currency: str | None = None
    image_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    website: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    attendees: list[str] = Field(default_factory=list)
    interested: list[str] = Field(default_factory=list)
    author_id: str
    created_at: Timestamp


class EventCreate(CamelModel):
    """Schema for creating an event; the author becomes its first attendee."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=10000)
    start_date: Timestamp
    end_date: Timestamp
    location: Location | None = None
    category: EventCategory = "other"
    is_public: bool = True
    max_attendees: int | None = Field(None, ge=1)
    price: float | None = Field(None, ge=0)
    currency: str | None = None
    image_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    website: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    author_id: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> EventCreate:
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class EventUpdate(PartialUpdate):
    """Partial event update; unset fields are left untouched.

    Optional details such as ``location`` or ``price`` may be cleared with
    null. When both dates are given they must be in order; a single date is
    checked against the stored one by the service.
    """

    nullable_fields = frozenset(
        {
            "location",
            "max_attendees",
            "price",
            "currency",
            "image_url",
            "website",
            "contact_email",
            "contact_phone",
        }
    )

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    start_date: Timestamp | None = None
    end_date: Timestamp | None = None
    location: Location | None = None
    category: EventCategory | None = None
    is_public: bool | None = None
    max_attendees: int | None = Field(None, ge=1)
    price: float | None = Field(None, ge=0)
    currency: str | None = None
    image_url: str | None = None
    tags: list[str] | None = None
    website: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> EventUpdate:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class EventFilter(CamelModel):
    """Listing filter.

    ``category``, ``start_date`` and ``end_date`` are applied by the store;
    ``query`` and ``location`` are substring filters applied afterwards, and
    when both are given only ``query`` is used.
    """

    category: EventCategory | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    query: str | None = None
    location: str | None = None
