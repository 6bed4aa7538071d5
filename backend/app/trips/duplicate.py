"""Trip duplication.

Duplication runs in three steps:

1. ``load_trip_snapshot`` reads the source graph (events, budget, tags) into
   plain data-transfer objects after checking access.
2. ``plan_trip_copy`` is a pure function producing the new graph: dates
   shifted, ownership reset, visibility forced private, not archived.
3. ``persist_trip_copy`` writes the whole plan in one transaction.

Collaborators, expenses, documents, messages, ideas and polls are never part
of a snapshot, so they are never copied.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.context import RequestContext
from backend.app.db.models import Budget, Event, Tag, Trip
from backend.app.db.queries import get_trip_access
from backend.app.errors import InternalError, TripPlannerError
from backend.app.models.common import Visibility
from backend.app.utils.logging import event_logger
from backend.app.utils.metrics import PrometheusTripMetrics

metrics = PrometheusTripMetrics()

COPY_SUFFIX = " (Copy)"


@dataclass(frozen=True)
class EventSnapshot:
    """Copyable fields of an itinerary event."""

    type: str
    title: str
    description: str | None
    start_datetime: datetime
    end_datetime: datetime | None
    location: dict[str, Any] | None
    cost: Decimal | None
    currency: str | None
    order: int
    notes: str | None
    confirmation_number: str | None


@dataclass(frozen=True)
class BudgetSnapshot:
    """Budget structure without any spending."""

    total_budget: Decimal
    currency: str
    category_budgets: dict[str, str]


@dataclass(frozen=True)
class TagSnapshot:
    name: str
    color: str | None


@dataclass(frozen=True)
class TripSnapshot:
    """Source trip graph as read from storage."""

    trip_id: uuid.UUID
    name: str
    description: str | None
    start_date: date
    end_date: date
    destinations: list[str]
    visibility: str
    is_archived: bool
    events: list[EventSnapshot] = field(default_factory=list)
    budget: BudgetSnapshot | None = None
    tags: list[TagSnapshot] = field(default_factory=list)


@dataclass(frozen=True)
class TripCopyPlan:
    """New trip graph ready to be written."""

    trip_id: uuid.UUID
    name: str
    description: str | None
    start_date: date
    end_date: date
    destinations: list[str]
    visibility: str
    is_archived: bool
    created_by: uuid.UUID
    events: list[EventSnapshot]
    budget: BudgetSnapshot | None
    tags: list[TagSnapshot]


def plan_trip_copy(
    source: TripSnapshot,
    owner_id: uuid.UUID,
    start_date: date,
    new_trip_id: uuid.UUID | None = None,
) -> TripCopyPlan:
    """Plan a copy of a trip starting on ``start_date``.

    The trip duration is preserved, and every event moves by the same offset
    as the trip start, so relative order and gaps between events are kept.
    """
    duration = source.end_date - source.start_date
    shift = timedelta(days=(start_date - source.start_date).days)

    events = [
        replace(
            event,
            start_datetime=event.start_datetime + shift,
            end_datetime=event.end_datetime + shift if event.end_datetime else None,
        )
        for event in source.events
    ]

    return TripCopyPlan(
        trip_id=new_trip_id or uuid.uuid4(),
        name=f"{source.name}{COPY_SUFFIX}",
        description=source.description,
        start_date=start_date,
        end_date=start_date + duration,
        destinations=list(source.destinations),
        visibility=Visibility.private.value,
        is_archived=False,
        created_by=owner_id,
        events=events,
        budget=source.budget,
        tags=list(source.tags),
    )


async def load_trip_snapshot(
    session: AsyncSession, trip_id: uuid.UUID, ctx: RequestContext
) -> TripSnapshot:
    """Read the copyable part of a trip the user can access.

    Any accepted collaborator may duplicate, whatever their role.

    Raises:
        NotFoundError: Trip does not exist
        ForbiddenError: User is neither creator nor accepted collaborator
    """
    access = await get_trip_access(session, trip_id, ctx)
    trip = access.trip

    events_result = await session.execute(
        select(Event)
        .where(Event.trip_id == trip_id)
        .order_by(Event.start_datetime.asc(), Event.order.asc())
    )
    events = [
        EventSnapshot(
            type=event.type,
            title=event.title,
            description=event.description,
            start_datetime=event.start_datetime,
            end_datetime=event.end_datetime,
            location=dict(event.location) if event.location else None,
            cost=event.cost,
            currency=event.currency,
            order=event.order,
            notes=event.notes,
            confirmation_number=event.confirmation_number,
        )
        for event in events_result.scalars().all()
    ]

    budget_result = await session.execute(select(Budget).where(Budget.trip_id == trip_id))
    budget_row = budget_result.scalar_one_or_none()
    budget = (
        BudgetSnapshot(
            total_budget=budget_row.total_budget,
            currency=budget_row.currency,
            category_budgets=dict(budget_row.category_budgets or {}),
        )
        if budget_row is not None
        else None
    )

    tags_result = await session.execute(select(Tag).where(Tag.trip_id == trip_id))
    tags = [TagSnapshot(name=tag.name, color=tag.color) for tag in tags_result.scalars().all()]

    return TripSnapshot(
        trip_id=trip.trip_id,
        name=trip.name,
        description=trip.description,
        start_date=trip.start_date,
        end_date=trip.end_date,
        destinations=list(trip.destinations or []),
        visibility=trip.visibility,
        is_archived=trip.is_archived,
        events=events,
        budget=budget,
        tags=tags,
    )


async def persist_trip_copy(session: AsyncSession, plan: TripCopyPlan) -> uuid.UUID:
    """Write a planned copy in a single transaction.

    Raises:
        InternalError: Storage failed; nothing from the plan is kept
    """
    try:
        session.add(
            Trip(
                trip_id=plan.trip_id,
                name=plan.name,
                description=plan.description,
                start_date=plan.start_date,
                end_date=plan.end_date,
                destinations=plan.destinations,
                visibility=plan.visibility,
                is_archived=plan.is_archived,
                created_by=plan.created_by,
            )
        )
        # Parent row first so child foreign keys resolve
        await session.flush()

        session.add_all(
            Event(
                trip_id=plan.trip_id,
                type=event.type,
                title=event.title,
                description=event.description,
                start_datetime=event.start_datetime,
                end_datetime=event.end_datetime,
                location=event.location,
                cost=event.cost,
                currency=event.currency,
                order=event.order,
                notes=event.notes,
                confirmation_number=event.confirmation_number,
                created_by=plan.created_by,
            )
            for event in plan.events
        )

        if plan.budget is not None:
            session.add(
                Budget(
                    trip_id=plan.trip_id,
                    total_budget=plan.budget.total_budget,
                    currency=plan.budget.currency,
                    category_budgets=dict(plan.budget.category_budgets),
                )
            )

        session.add_all(
            Tag(trip_id=plan.trip_id, name=tag.name, color=tag.color) for tag in plan.tags
        )

        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise InternalError("Failed to duplicate trip") from e

    return plan.trip_id


async def duplicate_trip(
    session: AsyncSession,
    trip_id: uuid.UUID,
    ctx: RequestContext,
    start_date: date | None = None,
    today: date | None = None,
) -> uuid.UUID:
    """Duplicate a trip for the requesting user.

    Args:
        session: Database session
        trip_id: Source trip
        ctx: Request context; the user becomes owner of the copy
        start_date: Start of the copy; defaults to today
        today: Override for the current local date

    Returns:
        ID of the new trip
    """
    try:
        source = await load_trip_snapshot(session, trip_id, ctx)
        new_start = start_date or today or date.today()
        plan = plan_trip_copy(source, owner_id=ctx.user_id, start_date=new_start)
        new_trip_id = await persist_trip_copy(session, plan)
    except TripPlannerError as e:
        metrics.record_duplication(outcome=e.code.value.lower())
        raise

    metrics.record_duplication(outcome="success", events_copied=len(plan.events))
    event_logger.log_event(
        ctx,
        "trip_duplicated",
        trip_id,
        new_trip_id=new_trip_id,
        events_copied=len(plan.events),
        tags_copied=len(plan.tags),
        budget_copied=plan.budget is not None,
    )
    return new_trip_id
