"""Trip, event, and tag views returned by the API."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from backend.app.models.common import EventType, Location, Money, Visibility


class TagView(BaseModel):
    """Trip tag."""

    id: str
    name: str
    color: str | None


class EventView(BaseModel):
    """Single itinerary event."""

    id: str
    trip_id: str
    type: EventType
    title: str
    description: str | None
    start_datetime: datetime
    end_datetime: datetime | None
    location: Location | None
    cost: Money | None
    order: int
    notes: str | None
    confirmation_number: str | None
    created_by: str


class BudgetStructure(BaseModel):
    """Stored budget structure (no derived spending)."""

    id: str
    total_budget: float
    currency: str
    category_budgets: dict[str, float]


class TripSummary(BaseModel):
    """Trip fields shown in listings."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    description: str | None
    start_date: date
    end_date: date
    destinations: list[str]
    visibility: Visibility
    is_archived: bool
    created_by: str
    created_at: datetime
    updated_at: datetime


class TripDetail(TripSummary):
    """Trip with its itinerary, budget structure, and tags."""

    events: list[EventView]
    budget: BudgetStructure | None
    tags: list[TagView]
    event_count: int
    tag_count: int
