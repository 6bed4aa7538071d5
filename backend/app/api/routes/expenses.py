"""Expense endpoints - record, list, edit, delete, and settle shared expenses."""

import logging
import uuid
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.api.auth import get_current_context
from backend.app.api.views import to_expense_view
from backend.app.config import get_settings
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Event, Expense, ExpenseSplit, Trip
from backend.app.db.queries import get_trip_access, list_member_ids
from backend.app.errors import ForbiddenError, NotFoundError, ValidationError
from backend.app.expenses.settlements import PaidExpense, calculate_settlements
from backend.app.expenses.splits import (
    SplitMode,
    SplitShare,
    split_by_amount,
    split_by_percentage,
    split_equally,
)
from backend.app.models.common import (
    EDIT_ROLES,
    CurrencyCode,
    ExpenseCategory,
    MoneyAmount,
    quantize_money,
)
from backend.app.models.expense import (
    AmountSplit,
    EqualSplit,
    ExpenseView,
    PercentageSplit,
    SettlementView,
    SplitInput,
)
from backend.app.utils.logging import event_logger
from backend.app.utils.metrics import PrometheusTripMetrics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips/{trip_id}/expenses", tags=["expenses"])

metrics = PrometheusTripMetrics()


class CreateExpenseRequest(BaseModel):
    """Request body for POST /trips/{trip_id}/expenses."""

    category: ExpenseCategory
    description: str = Field(..., min_length=1, max_length=500)
    amount: MoneyAmount = Field(..., gt=0)
    currency: CurrencyCode = "USD"
    date: datetime
    event_id: uuid.UUID | None = None
    receipt_url: str | None = Field(None, max_length=2000)
    split: SplitInput | None = None


class UpdateExpenseRequest(BaseModel):
    """Request body for PATCH /trips/{trip_id}/expenses/{expense_id}.

    Omitted fields keep their value. A new split replaces every share.
    """

    category: ExpenseCategory | None = None
    description: str | None = Field(None, min_length=1, max_length=500)
    amount: Annotated[MoneyAmount, Field(gt=0)] | None = None
    currency: CurrencyCode | None = None
    date: datetime | None = None
    event_id: uuid.UUID | None = None
    receipt_url: str | None = Field(None, max_length=2000)
    split: SplitInput | None = None


class ExpenseSummary(BaseModel):
    total_amount: MoneyAmount
    by_category: dict[str, MoneyAmount]


class ExpenseListResponse(BaseModel):
    """Response for GET /trips/{trip_id}/expenses."""

    expenses: list[ExpenseView]
    total: int
    page: int
    limit: int
    summary: ExpenseSummary


class SettlementListResponse(BaseModel):
    settlements: list[SettlementView]


def compute_split(amount: Decimal, split: SplitInput) -> tuple[SplitMode, list[SplitShare]]:
    """Dispatch a validated split variant to the matching calculator."""
    if isinstance(split, EqualSplit):
        return SplitMode.EQUAL, split_equally(amount, split.user_ids)
    if isinstance(split, AmountSplit):
        declared = [(share.user_id, share.amount) for share in split.shares]
        return SplitMode.CUSTOM_AMOUNT, split_by_amount(amount, declared)
    if isinstance(split, PercentageSplit):
        declared = [(share.user_id, share.percentage) for share in split.shares]
        return SplitMode.CUSTOM_PERCENTAGE, split_by_percentage(amount, declared)
    raise ValidationError(f"Unsupported split mode: {split.mode}")


async def check_event_in_trip(session: AsyncSession, trip_id: uuid.UUID, event_id: uuid.UUID) -> None:
    result = await session.execute(
        select(Event.event_id).where(Event.event_id == event_id, Event.trip_id == trip_id)
    )
    if result.scalar_one_or_none() is None:
        raise ValidationError("Event does not belong to this trip")


async def check_split_members(session: AsyncSession, trip: Trip, shares: list[SplitShare]) -> None:
    """Raise ValidationError unless every split participant belongs to the trip."""
    members = await list_member_ids(session, trip)
    outsiders = [share.user_id for share in shares if share.user_id not in members]
    if outsiders:
        logger.info(
            "Rejected expense split with non-members",
            extra={
                "structured": {
                    "trip_id": str(trip.trip_id),
                    "user_ids": [str(u) for u in outsiders],
                }
            },
        )
        raise ValidationError(
            "All split participants must be trip members",
            details=[{"user_id": str(user_id)} for user_id in outsiders],
        )


async def get_expense_or_404(
    session: AsyncSession, trip_id: uuid.UUID, expense_id: uuid.UUID, with_splits: bool = False
) -> Expense:
    query = select(Expense).where(Expense.expense_id == expense_id, Expense.trip_id == trip_id)
    if with_splits:
        query = query.options(selectinload(Expense.splits)).execution_options(
            populate_existing=True
        )
    expense = (await session.execute(query)).scalar_one_or_none()
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


@router.post("", response_model=ExpenseView, status_code=status.HTTP_201_CREATED)
async def create_expense(
    trip_id: uuid.UUID,
    request: CreateExpenseRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ExpenseView:
    """Record an expense paid by the current user.

    Without a split the payer owes the full amount. Split participants must
    be members of the trip. The expense and its splits commit together.
    """
    access = await get_trip_access(session, trip_id, ctx)

    if request.event_id is not None:
        await check_event_in_trip(session, trip_id, request.event_id)

    amount = quantize_money(request.amount)
    if request.split is None:
        mode, shares = SplitMode.EQUAL, [SplitShare(user_id=ctx.user_id, amount=amount)]
    else:
        mode, shares = compute_split(amount, request.split)

    await check_split_members(session, access.trip, shares)

    expense = Expense(
        expense_id=uuid.uuid4(),
        trip_id=trip_id,
        event_id=request.event_id,
        category=request.category.value,
        description=request.description,
        amount=amount,
        currency=request.currency,
        date=request.date,
        paid_by=ctx.user_id,
        receipt_url=request.receipt_url,
    )
    expense.splits = [
        ExpenseSplit(split_id=uuid.uuid4(), user_id=share.user_id, amount=share.amount)
        for share in shares
    ]
    session.add(expense)
    await session.commit()

    metrics.inc_expense(mode.value)
    event_logger.log_event(
        ctx,
        "expense_created",
        trip_id,
        expense_id=expense.expense_id,
        amount=str(amount),
        split_mode=mode.value,
        participants=len(shares),
    )

    return to_expense_view(expense)


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    category: ExpenseCategory | None = None,
    paid_by: uuid.UUID | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> ExpenseListResponse:
    """List expenses, newest first, with totals over the filtered set."""
    await get_trip_access(session, trip_id, ctx)
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)

    filters = [Expense.trip_id == trip_id]
    if category is not None:
        filters.append(Expense.category == category.value)
    if paid_by is not None:
        filters.append(Expense.paid_by == paid_by)

    total = (
        await session.execute(select(func.count()).select_from(Expense).where(*filters))
    ).scalar_one()

    result = await session.execute(
        select(Expense)
        .where(*filters)
        .options(selectinload(Expense.splits))
        .order_by(Expense.date.desc(), Expense.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    expenses = [to_expense_view(expense) for expense in result.scalars().all()]

    by_category: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    rows = await session.execute(select(Expense.category, Expense.amount).where(*filters))
    for name, amount in rows.all():
        by_category[name] += Decimal(amount)

    return ExpenseListResponse(
        expenses=expenses,
        total=total,
        page=page,
        limit=limit,
        summary=ExpenseSummary(
            total_amount=sum(by_category.values(), Decimal("0")),
            by_category=dict(by_category),
        ),
    )


@router.get("/settlements", response_model=SettlementListResponse)
async def get_settlements(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SettlementListResponse:
    """Transfers that would settle every balance on the trip."""
    await get_trip_access(session, trip_id, ctx)

    result = await session.execute(
        select(Expense).where(Expense.trip_id == trip_id).options(selectinload(Expense.splits))
    )
    paid = [
        PaidExpense(
            paid_by=expense.paid_by,
            amount=Decimal(expense.amount),
            splits=[(split.user_id, Decimal(split.amount)) for split in expense.splits],
        )
        for expense in result.scalars().all()
    ]

    return SettlementListResponse(
        settlements=[
            SettlementView(
                from_user_id=str(settlement.from_user_id),
                to_user_id=str(settlement.to_user_id),
                amount=settlement.amount,
            )
            for settlement in calculate_settlements(paid)
        ]
    )


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    trip_id: uuid.UUID,
    expense_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Delete an expense. Allowed for its payer and for editors and above."""
    access = await get_trip_access(session, trip_id, ctx)

    expense = await get_expense_or_404(session, trip_id, expense_id)
    if expense.paid_by != ctx.user_id and access.role not in EDIT_ROLES:
        raise ForbiddenError("You do not have permission to delete this expense")

    await session.execute(delete(ExpenseSplit).where(ExpenseSplit.expense_id == expense_id))
    await session.execute(delete(Expense).where(Expense.expense_id == expense_id))
    await session.commit()

    event_logger.log_event(ctx, "expense_deleted", trip_id, expense_id=expense_id)


@router.get("/{expense_id}", response_model=ExpenseView)
async def get_expense(
    trip_id: uuid.UUID,
    expense_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ExpenseView:
    await get_trip_access(session, trip_id, ctx)
    expense = await get_expense_or_404(session, trip_id, expense_id, with_splits=True)
    return to_expense_view(expense)


@router.patch("/{expense_id}", response_model=ExpenseView)
async def update_expense(
    trip_id: uuid.UUID,
    expense_id: uuid.UUID,
    request: UpdateExpenseRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ExpenseView:
    """Edit an expense. Allowed for its payer and for editors and above.

    A new split is computed against the new amount (or the stored one).
    Changing the amount of an expense shared by several people requires a
    new split; a single-participant expense follows the amount.
    """
    access = await get_trip_access(session, trip_id, ctx)
    expense = await get_expense_or_404(session, trip_id, expense_id)
    if expense.paid_by != ctx.user_id and access.role not in EDIT_ROLES:
        raise ForbiddenError("You do not have permission to update this expense")

    changes = request.model_dump(exclude_unset=True, exclude={"split"})
    for field in ("category", "description", "amount", "currency", "date"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be null")

    if changes.get("event_id") is not None:
        await check_event_in_trip(session, trip_id, changes["event_id"])

    if "amount" in changes:
        changes["amount"] = quantize_money(changes["amount"])
    if "category" in changes:
        changes["category"] = changes["category"].value
    amount = changes.get("amount", Decimal(expense.amount))

    shares: list[SplitShare] | None = None
    if request.split is not None:
        _, shares = compute_split(amount, request.split)
    elif "amount" in changes:
        rows = await session.execute(
            select(ExpenseSplit.user_id).where(ExpenseSplit.expense_id == expense_id)
        )
        participants = list(rows.scalars().all())
        if len(participants) != 1:
            raise ValidationError("Provide a split when changing the amount of a shared expense")
        shares = [SplitShare(user_id=participants[0], amount=amount)]

    if shares is not None:
        await check_split_members(session, access.trip, shares)
        await session.execute(delete(ExpenseSplit).where(ExpenseSplit.expense_id == expense_id))
        session.add_all(
            ExpenseSplit(
                split_id=uuid.uuid4(), expense_id=expense_id, user_id=share.user_id, amount=share.amount
            )
            for share in shares
        )

    for field, value in changes.items():
        setattr(expense, field, value)
    await session.commit()

    event_logger.log_event(
        ctx,
        "expense_updated",
        trip_id,
        expense_id=expense_id,
        fields=sorted(changes) + (["split"] if shares is not None else []),
    )

    expense = await get_expense_or_404(session, trip_id, expense_id, with_splits=True)
    return to_expense_view(expense)
