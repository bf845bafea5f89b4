"""Geodata and keyword helpers shared by posts, events and search."""
from __future__ import annotations

import re
from typing import Any

from travel_threads.schemas.common import Location
from travel_threads.store.base import DELETE_FIELD

_QUERY_SEPARATORS = re.compile(r"[,\s]+")


def location_keywords(name: str) -> list[str]:
    """Split a location name into lower-cased, comma-separated keywords.

    >>> location_keywords("Paris, France")
    ['paris', 'france']
    """
    return [part.strip() for part in name.lower().split(",") if part.strip()]


def query_keywords(text: str) -> list[str]:
    """Split a location search query on commas and whitespace."""
    return [part for part in _QUERY_SEPARATORS.split(text.lower()) if part]


def derived_location_fields(location: Location) -> dict[str, Any]:
    """Return the ``geopoint`` and ``locationKeywords`` fields for ``location``."""
    fields: dict[str, Any] = {
        "geopoint": {"latitude": location.lat, "longitude": location.lng},
    }
    if location.name:
        fields["locationKeywords"] = location_keywords(location.name)
    return fields


def location_changes(location: Location | None) -> dict[str, Any]:
    """Return update values that replace the stored location and its derivations."""
    if location is None:
        return {"location": DELETE_FIELD, "geopoint": DELETE_FIELD, "locationKeywords": DELETE_FIELD}
    changes: dict[str, Any] = {
        "location": location.to_document(exclude_none=True),
        "locationKeywords": DELETE_FIELD,
    }
    changes.update(derived_location_fields(location))
    return changes
