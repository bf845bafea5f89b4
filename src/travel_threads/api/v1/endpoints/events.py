# src/travel_threads/api/v1/endpoints/events.py
"""Event listing, calendar and attendance endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from travel_threads.api.v1.dependencies import ContextDep, CurrentUserDep
from travel_threads.schemas.event import (
    Event,
    EventCategory,
    EventCreate,
    EventFilter,
    EventUpdate,
)
from travel_threads.schemas.user import UserProfile
from travel_threads.services import events
from travel_threads.services.context import ServiceContext

router = APIRouter(prefix="/events", tags=["events"])


def event_filter(
    category: EventCategory | None = Query(None),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    query: str | None = Query(None, description="Substring of title or description"),
    location: str | None = Query(None, description="Substring of the location name"),
) -> EventFilter:
    """Collect listing filters from query parameters."""
    return EventFilter(
        category=category,
        start_date=start_date,
        end_date=end_date,
        query=query,
        location=location,
    )


EventFilterDep = Annotated[EventFilter, Depends(event_filter)]


async def _load_event(ctx: ServiceContext, event_id: str) -> Event:
    event = await events.get_event(ctx, event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


def _check_organizer(event: Event, user: UserProfile) -> None:
    if event.author_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the organizer can change this event",
        )


@router.get("/", response_model=list[Event])
async def list_events(ctx: ContextDep, filters: EventFilterDep) -> list[Event]:
    """List events by start date with optional filters."""
    return await events.get_events(ctx, filters)


@router.post("/", response_model=Event, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> Event:
    """Create an event organized by the authenticated user."""
    data = payload.model_copy(update={"author_id": current_user.id})
    event_id = await events.create_event(ctx, data)
    return await _load_event(ctx, event_id)


@router.get("/calendar/{year}/{month}", response_model=list[Event])
async def events_by_month(
    year: int,
    month: int,
    ctx: ContextDep,
) -> list[Event]:
    """List the events starting in one calendar month (1-12)."""
    return await events.get_events_by_month(ctx, year, month)


@router.get("/upcoming", response_model=list[Event])
async def upcoming_events(
    ctx: ContextDep,
    count: int = Query(10, ge=1, le=100),
) -> list[Event]:
    """List events that have not started yet, soonest first."""
    return await events.get_upcoming_events(ctx, count)


@router.get("/popular", response_model=list[Event])
async def popular_events(
    ctx: ContextDep,
    count: int = Query(10, ge=1, le=100),
) -> list[Event]:
    """List upcoming events with the most attendees first."""
    return await events.get_popular_events(ctx, count)


@router.get("/attending", response_model=list[Event])
async def attending_events(current_user: CurrentUserDep, ctx: ContextDep) -> list[Event]:
    """List the events the caller attends."""
    return await events.get_attending_events(ctx, current_user.id)


@router.get("/interested", response_model=list[Event])
async def interested_events(current_user: CurrentUserDep, ctx: ContextDep) -> list[Event]:
    """List the events the caller is interested in."""
    return await events.get_interested_events(ctx, current_user.id)


@router.get("/{event_id}", response_model=Event)
async def get_event(event_id: str, ctx: ContextDep) -> Event:
    """Fetch a single event."""
    return await _load_event(ctx, event_id)


@router.patch("/{event_id}", response_model=Event)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> Event:
    """Edit an event. Only its organizer (or an admin) may do so."""
    _check_organizer(await _load_event(ctx, event_id), current_user)
    await events.update_event(ctx, event_id, payload)
    return await _load_event(ctx, event_id)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> None:
    """Delete an event."""
    _check_organizer(await _load_event(ctx, event_id), current_user)
    await events.delete_event(ctx, event_id)


@router.post("/{event_id}/attend", response_model=Event)
async def attend(event_id: str, current_user: CurrentUserDep, ctx: ContextDep) -> Event:
    """Attend an event; this also clears the caller's interest."""
    return await events.attend_event(ctx, event_id, current_user.id)


@router.delete("/{event_id}/attend", response_model=Event)
async def cancel_attendance(
    event_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> Event:
    """Stop attending an event."""
    await events.cancel_attendance(ctx, event_id, current_user.id)
    return await _load_event(ctx, event_id)


@router.post("/{event_id}/interested", response_model=Event)
async def mark_interested(
    event_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> Event:
    """Mark the caller as interested in an event."""
    await events.mark_interested(ctx, event_id, current_user.id)
    return await _load_event(ctx, event_id)
