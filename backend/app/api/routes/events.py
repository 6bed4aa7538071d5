"""Itinerary event endpoints - list, create, update, delete, reorder."""

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.api.views import to_event_view
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Event, as_utc
from backend.app.db.queries import get_trip_access
from backend.app.errors import NotFoundError, ValidationError
from backend.app.models.common import EDIT_ROLES, EventType, Location, Money
from backend.app.models.trip import EventView

router = APIRouter(prefix="/trips/{trip_id}/events", tags=["events"])


class CreateEventRequest(BaseModel):
    """Request body for POST /trips/{trip_id}/events."""

    type: EventType
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    start_datetime: datetime
    end_datetime: datetime | None = None
    location: Location | None = None
    cost: Money | None = None
    order: int = Field(0, ge=0)
    notes: str | None = Field(None, max_length=2000)
    confirmation_number: str | None = Field(None, max_length=100)

    @model_validator(mode="after")
    def check_window(self) -> "CreateEventRequest":
        if self.end_datetime and as_utc(self.end_datetime) < as_utc(self.start_datetime):
            raise ValueError("End date/time must be after or equal to start date/time")
        return self


class UpdateEventRequest(BaseModel):
    """Request body for PATCH /trips/{trip_id}/events/{event_id}."""

    type: EventType | None = None
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    location: Location | None = None
    cost: Money | None = None
    order: int | None = Field(None, ge=0)
    notes: str | None = Field(None, max_length=2000)
    confirmation_number: str | None = Field(None, max_length=100)


class EventOrder(BaseModel):
    event_id: uuid.UUID
    order: int = Field(..., ge=0)


class ReorderEventsRequest(BaseModel):
    """Request body for POST /trips/{trip_id}/events/reorder."""

    events: list[EventOrder] = Field(..., min_length=1)


class EventListResponse(BaseModel):
    events: list[EventView]


# Fields that cannot be cleared by sending null
_REQUIRED_FIELDS = ("type", "title", "start_datetime", "order")


@router.get("", response_model=EventListResponse)
async def list_events(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> EventListResponse:
    """List a trip's events in itinerary order."""
    await get_trip_access(session, trip_id, ctx)
    result = await session.execute(
        select(Event)
        .where(Event.trip_id == trip_id)
        .order_by(Event.start_datetime.asc(), Event.order.asc())
    )
    return EventListResponse(events=[to_event_view(event) for event in result.scalars().all()])


@router.post("", response_model=EventView, status_code=status.HTTP_201_CREATED)
async def create_event(
    trip_id: uuid.UUID,
    request: CreateEventRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> EventView:
    """Add an event to the itinerary."""
    await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)

    event = Event(
        event_id=uuid.uuid4(),
        trip_id=trip_id,
        type=request.type.value,
        title=request.title,
        description=request.description,
        start_datetime=request.start_datetime,
        end_datetime=request.end_datetime,
        location=request.location.model_dump(mode="json") if request.location else None,
        cost=request.cost.amount if request.cost else None,
        currency=request.cost.currency if request.cost else None,
        order=request.order,
        notes=request.notes,
        confirmation_number=request.confirmation_number,
        created_by=ctx.user_id,
    )
    session.add(event)
    await session.commit()

    return to_event_view(event)


@router.post("/reorder", response_model=EventListResponse)
async def reorder_events(
    trip_id: uuid.UUID,
    request: ReorderEventsRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> EventListResponse:
    """Set itinerary positions for several events at once.

    Every event must belong to the trip; otherwise nothing changes.
    """
    await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)

    ids = [item.event_id for item in request.events]
    if len(set(ids)) != len(ids):
        raise ValidationError("Duplicate event IDs in reorder request")

    result = await session.execute(
        select(Event).where(Event.trip_id == trip_id, Event.event_id.in_(ids))
    )
    events = {event.event_id: event for event in result.scalars().all()}
    if len(events) != len(ids):
        raise ValidationError("One or more events do not belong to this trip")

    for item in request.events:
        events[item.event_id].order = item.order
    await session.commit()

    result = await session.execute(
        select(Event)
        .where(Event.trip_id == trip_id)
        .order_by(Event.start_datetime.asc(), Event.order.asc())
    )
    return EventListResponse(events=[to_event_view(event) for event in result.scalars().all()])


@router.patch("/{event_id}", response_model=EventView)
async def update_event(
    trip_id: uuid.UUID,
    event_id: uuid.UUID,
    request: UpdateEventRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> EventView:
    """Update an event. Omitted fields are unchanged."""
    await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)
    event = await _get_event(session, trip_id, event_id)

    changes = request.model_dump(exclude_unset=True)
    for key in _REQUIRED_FIELDS:
        if key in changes and changes[key] is None:
            del changes[key]

    if "cost" in changes:
        cost = request.cost
        event.cost = cost.amount if cost else None
        event.currency = cost.currency if cost else None
        del changes["cost"]
    if "location" in changes:
        changes["location"] = request.location.model_dump(mode="json") if request.location else None
    if "type" in changes:
        changes["type"] = EventType(changes["type"]).value

    for key, value in changes.items():
        setattr(event, key, value)

    if event.end_datetime and as_utc(event.end_datetime) < as_utc(event.start_datetime):
        raise ValidationError("End date/time must be after or equal to start date/time")

    await session.commit()
    return to_event_view(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    trip_id: uuid.UUID,
    event_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Remove an event from the itinerary."""
    await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)
    result = await session.execute(
        delete(Event).where(Event.event_id == event_id, Event.trip_id == trip_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("Event not found")
    await session.commit()


async def _get_event(session: AsyncSession, trip_id: uuid.UUID, event_id: uuid.UUID) -> Event:
    result = await session.execute(
        select(Event).where(Event.event_id == event_id, Event.trip_id == trip_id)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError("Event not found")
    return event
