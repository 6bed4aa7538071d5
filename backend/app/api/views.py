"""ORM row to API view conversion shared by several routers."""

import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.db.models import Budget, Event, Expense, Tag, Trip
from backend.app.errors import NotFoundError
from backend.app.models.common import Location, Money
from backend.app.models.expense import ExpenseView, SplitView
from backend.app.models.trip import BudgetStructure, EventView, TagView, TripDetail, TripSummary


def to_trip_summary(trip: Trip) -> TripSummary:
    return TripSummary(
        id=str(trip.trip_id),
        name=trip.name,
        description=trip.description,
        start_date=trip.start_date,
        end_date=trip.end_date,
        destinations=list(trip.destinations or []),
        visibility=trip.visibility,
        is_archived=trip.is_archived,
        created_by=str(trip.created_by),
        created_at=trip.created_at,
        updated_at=trip.updated_at,
    )


def to_event_view(event: Event) -> EventView:
    cost = None
    if event.cost is not None:
        cost = Money(amount=event.cost, currency=event.currency or "USD")

    return EventView(
        id=str(event.event_id),
        trip_id=str(event.trip_id),
        type=event.type,
        title=event.title,
        description=event.description,
        start_datetime=event.start_datetime,
        end_datetime=event.end_datetime,
        location=Location.model_validate(event.location) if event.location else None,
        cost=cost,
        order=event.order,
        notes=event.notes,
        confirmation_number=event.confirmation_number,
        created_by=str(event.created_by),
    )


def to_tag_view(tag: Tag) -> TagView:
    return TagView(id=str(tag.tag_id), name=tag.name, color=tag.color)


def to_budget_structure(budget: Budget) -> BudgetStructure:
    return BudgetStructure(
        id=str(budget.budget_id),
        total_budget=float(budget.total_budget),
        currency=budget.currency,
        category_budgets={
            category: float(Decimal(amount))
            for category, amount in (budget.category_budgets or {}).items()
        },
    )


def to_expense_view(expense: Expense) -> ExpenseView:
    """Convert an expense whose splits are already loaded."""
    return ExpenseView(
        id=str(expense.expense_id),
        trip_id=str(expense.trip_id),
        event_id=str(expense.event_id) if expense.event_id else None,
        category=expense.category,
        description=expense.description,
        amount=expense.amount,
        currency=expense.currency,
        date=expense.date,
        paid_by=str(expense.paid_by),
        receipt_url=expense.receipt_url,
        splits=[SplitView(user_id=str(split.user_id), amount=split.amount) for split in expense.splits],
        created_at=expense.created_at,
    )


async def load_trip_detail(session: AsyncSession, trip_id: uuid.UUID) -> TripDetail:
    """Load a trip with events (itinerary order), budget, and tags."""
    result = await session.execute(
        select(Trip)
        .where(Trip.trip_id == trip_id)
        .options(selectinload(Trip.events), selectinload(Trip.budget), selectinload(Trip.tags))
        .execution_options(populate_existing=True)
    )
    trip = result.scalar_one_or_none()
    if trip is None:
        raise NotFoundError("Trip not found")

    events = sorted(trip.events, key=lambda event: (event.start_datetime, event.order))
    summary = to_trip_summary(trip)
    return TripDetail(
        **summary.model_dump(),
        events=[to_event_view(event) for event in events],
        budget=to_budget_structure(trip.budget) if trip.budget else None,
        tags=[to_tag_view(tag) for tag in trip.tags],
        event_count=len(events),
        tag_count=len(trip.tags),
    )
