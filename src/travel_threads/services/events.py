"""Travel events and their attendee/interested sets."""
from __future__ import annotations

import logging
from datetime import UTC, datetime

from travel_threads.db.time import to_timestamp
from travel_threads.errors import InvalidOperationError, NotFoundError
from travel_threads.schemas.event import Event, EventCreate, EventFilter, EventUpdate
from travel_threads.services.collections import EVENTS
from travel_threads.services.context import ServiceContext
from travel_threads.services.location import derived_location_fields, location_changes
from travel_threads.services.notifications import notify
from travel_threads.store.base import (
    ArrayRemove,
    ArrayUnion,
    DocumentSnapshot,
    Query,
    new_document_id,
)

logger = logging.getLogger(__name__)

__all__ = [
    "create_event",
    "get_events",
    "get_events_by_month",
    "get_event",
    "update_event",
    "delete_event",
    "get_user_events",
    "attend_event",
    "mark_interested",
    "cancel_attendance",
    "get_upcoming_events",
    "get_attending_events",
    "get_interested_events",
    "get_popular_events",
]


def _events(snapshots: list[DocumentSnapshot]) -> list[Event]:
    return [Event.from_snapshot(snapshot) for snapshot in snapshots]


async def create_event(ctx: ServiceContext, data: EventCreate) -> str:
    """Create an event; its author is the first attendee.

    Raises:
        InvalidOperationError: If no author is given
    """
    if not data.author_id:
        raise InvalidOperationError("authorId is required")
    document = data.to_document(exclude_none=True)
    document.update(geopoint=None, locationKeywords=None)
    if data.location is not None:
        document.update(derived_location_fields(data.location))
    document.update(
        attendees=[data.author_id],
        interested=[],
        createdAt=ctx.timestamp(),
    )
    event_id = new_document_id()
    await ctx.store.set(EVENTS, event_id, document)
    logger.info("User %s created event %s", data.author_id, event_id)
    return event_id


async def get_events(ctx: ServiceContext, filter: EventFilter | None = None) -> list[Event]:
    """List events by start date, optionally filtered.

    Category and date bounds are evaluated by the store. A text ``query``
    then keeps events whose title or description contains it; otherwise a
    ``location`` keeps events whose location name contains it. The two text
    filters are alternatives and are never combined.
    """
    query = Query(EVENTS).order_by("startDate")
    if filter is not None:
        if filter.category:
            query = query.where("category", "==", filter.category)
        if filter.start_date:
            query = query.where("startDate", ">=", to_timestamp(filter.start_date))
        if filter.end_date:
            query = query.where("endDate", "<=", to_timestamp(filter.end_date))
    events = _events(await ctx.store.query(query))

    if filter is not None and filter.query:
        needle = filter.query.lower()
        return [
            event
            for event in events
            if needle in event.title.lower() or needle in event.description.lower()
        ]
    if filter is not None and filter.location:
        needle = filter.location.lower()
        return [
            event
            for event in events
            if event.location is not None
            and event.location.name
            and needle in event.location.name.lower()
        ]
    return events


async def get_events_by_month(ctx: ServiceContext, year: int, month: int) -> list[Event]:
    """Return events starting within a calendar month (``month`` is 1-12, UTC)."""
    if not 1 <= month <= 12:
        raise InvalidOperationError(f"month must be between 1 and 12, got {month}")
    start = datetime(year, month, 1, tzinfo=UTC)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=UTC)
    else:
        end = datetime(year, month + 1, 1, tzinfo=UTC)
    query = (
        Query(EVENTS)
        .where("startDate", ">=", to_timestamp(start))
        .where("startDate", "<", to_timestamp(end))
        .order_by("startDate")
    )
    return _events(await ctx.store.query(query))


async def get_event(ctx: ServiceContext, event_id: str) -> Event | None:
    """Return one event, or None if it does not exist."""
    snapshot = await ctx.store.get(EVENTS, event_id)
    return Event.from_snapshot(snapshot) if snapshot.exists else None


async def update_event(ctx: ServiceContext, event_id: str, data: EventUpdate) -> None:
    """Merge the fields set on ``data`` into an event.

    Raises:
        NotFoundError: If the event does not exist
        InvalidOperationError: If the new dates would end the event before it starts
    """
    dates = {"start_date", "end_date"} & data.model_fields_set
    if len(dates) == 1:
        event = await get_event(ctx, event_id)
        if event is None:
            raise NotFoundError(EVENTS, event_id)
        start = data.start_date or event.start_date
        end = data.end_date or event.end_date
        if end < start:
            raise InvalidOperationError("endDate must not be before startDate")
    changes = data.to_document(exclude_unset=True)
    if "location" in data.model_fields_set:
        changes.update(location_changes(data.location))
    if changes:
        await ctx.store.update(EVENTS, event_id, changes)


async def delete_event(ctx: ServiceContext, event_id: str) -> bool:
    """Delete an event. Returns False if it did not exist."""
    snapshot = await ctx.store.get(EVENTS, event_id)
    if not snapshot.exists:
        return False
    await ctx.store.delete(EVENTS, event_id)
    logger.info("Deleted event %s", event_id)
    return True


async def get_user_events(ctx: ServiceContext, author_id: str) -> list[Event]:
    """Return the events organized by ``author_id``, by start date."""
    query = Query(EVENTS).where("authorId", "==", author_id).order_by("startDate")
    return _events(await ctx.store.query(query))


async def attend_event(ctx: ServiceContext, event_id: str, user_id: str) -> Event:
    """Add ``user_id`` to the attendees and remove them from the interested set.

    The organizer is notified the first time someone else attends.

    Raises:
        NotFoundError: If the event does not exist
        InvalidOperationError: If the event is already at ``maxAttendees``
    """
    snapshot = await ctx.store.get(EVENTS, event_id)
    if not snapshot.exists:
        raise NotFoundError(EVENTS, event_id)
    event = Event.from_snapshot(snapshot)
    newly_attending = user_id not in event.attendees
    if newly_attending and event.max_attendees and len(event.attendees) >= event.max_attendees:
        raise InvalidOperationError(f"Event {event_id} is full")

    await ctx.store.update(
        EVENTS,
        event_id,
        {"attendees": ArrayUnion(user_id), "interested": ArrayRemove(user_id)},
    )

    if newly_attending and event.author_id != user_id:
        await notify(
            ctx,
            event.author_id,
            "event_attendance",
            f'Someone is attending your event "{event.title}"',
            actor_id=user_id,
            entity_id=event_id,
            entity_type="event",
            data={"preview": f"{event.title} - {event.start_date.date().isoformat()}"},
        )

    attendees = event.attendees if not newly_attending else [*event.attendees, user_id]
    interested = [uid for uid in event.interested if uid != user_id]
    return event.model_copy(update={"attendees": attendees, "interested": interested})


async def mark_interested(ctx: ServiceContext, event_id: str, user_id: str) -> None:
    """Add ``user_id`` to the interested set.

    Attendance is left as it is: a user who already attends and marks
    interest appears in both sets until they attend or cancel again.

    Raises:
        NotFoundError: If the event does not exist
    """
    await ctx.store.update(EVENTS, event_id, {"interested": ArrayUnion(user_id)})


async def cancel_attendance(ctx: ServiceContext, event_id: str, user_id: str) -> None:
    """Remove ``user_id`` from the attendees.

    Raises:
        NotFoundError: If the event does not exist
    """
    await ctx.store.update(EVENTS, event_id, {"attendees": ArrayRemove(user_id)})


async def get_upcoming_events(ctx: ServiceContext, count: int = 10) -> list[Event]:
    """Return up to ``count`` events that have not started yet, soonest first."""
    query = (
        Query(EVENTS)
        .where("startDate", ">=", ctx.timestamp())
        .order_by("startDate")
        .limit_to(count)
    )
    return _events(await ctx.store.query(query))


async def get_attending_events(ctx: ServiceContext, user_id: str) -> list[Event]:
    """Return the events ``user_id`` attends, by start date."""
    query = Query(EVENTS).where("attendees", "array-contains", user_id).order_by("startDate")
    return _events(await ctx.store.query(query))


async def get_interested_events(ctx: ServiceContext, user_id: str) -> list[Event]:
    """Return the events ``user_id`` is interested in, by start date."""
    query = Query(EVENTS).where("interested", "array-contains", user_id).order_by("startDate")
    return _events(await ctx.store.query(query))


async def get_popular_events(ctx: ServiceContext, count: int = 10) -> list[Event]:
    """Return upcoming events with the most attendees first.

    All upcoming events are fetched and ranked in process; ties keep their
    start-date order.
    """
    query = Query(EVENTS).where("startDate", ">=", ctx.timestamp()).order_by("startDate")
    events = _events(await ctx.store.query(query))
    events.sort(key=lambda event: len(event.attendees), reverse=True)
    return events[:count]
