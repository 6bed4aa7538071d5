"""Budget endpoints - aggregated summary and budget updates."""

import uuid
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.budget.aggregator import summarize_budget
from backend.app.config import get_settings
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Budget, Expense
from backend.app.db.queries import get_trip_access
from backend.app.models.budget import BudgetView
from backend.app.models.common import (
    EDIT_ROLES,
    CurrencyCode,
    ExpenseCategory,
    MoneyAmount,
    quantize_money,
)
from backend.app.utils.logging import event_logger

router = APIRouter(prefix="/trips/{trip_id}/budget", tags=["budget"])


class UpdateBudgetRequest(BaseModel):
    """Request body for PATCH /trips/{trip_id}/budget."""

    total_budget: MoneyAmount | None = Field(None, ge=0)
    currency: CurrencyCode | None = None
    category_budgets: dict[ExpenseCategory, Annotated[MoneyAmount, Field(ge=0)]] | None = None


@router.get("", response_model=BudgetView)
async def get_budget(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> BudgetView:
    """Budget with spending derived from the trip's expenses.

    A trip without a stored budget reports a zero budget; nothing is written.
    """
    await get_trip_access(session, trip_id, ctx)
    budget = await _load_budget(session, trip_id)
    return await _build_view(session, trip_id, budget)


@router.patch("", response_model=BudgetView)
async def update_budget(
    trip_id: uuid.UUID,
    request: UpdateBudgetRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> BudgetView:
    """Set the trip budget (owner, admin, or editor).

    Category budgets merge into the existing ones. When ``total_budget`` is
    omitted the total becomes the sum of all category budgets.
    """
    await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)

    budget = await _load_budget(session, trip_id)
    if budget is None:
        budget = Budget(
            budget_id=uuid.uuid4(),
            trip_id=trip_id,
            total_budget=Decimal("0"),
            currency=get_settings().default_currency,
            category_budgets={},
        )
        session.add(budget)

    merged = dict(budget.category_budgets or {})
    if request.category_budgets:
        for category, amount in request.category_budgets.items():
            merged[ExpenseCategory(category).value] = str(quantize_money(amount))
    # Reassign so the JSON column is flagged dirty
    budget.category_budgets = merged

    if request.total_budget is not None:
        budget.total_budget = quantize_money(request.total_budget)
    else:
        budget.total_budget = sum((Decimal(amount) for amount in merged.values()), Decimal("0"))
    if request.currency:
        budget.currency = request.currency

    await session.commit()

    event_logger.log_event(
        ctx,
        "budget_updated",
        trip_id,
        total_budget=str(budget.total_budget),
        currency=budget.currency,
    )

    return await _build_view(session, trip_id, budget)


async def _load_budget(session: AsyncSession, trip_id: uuid.UUID) -> Budget | None:
    result = await session.execute(select(Budget).where(Budget.trip_id == trip_id))
    return result.scalar_one_or_none()


async def _build_view(
    session: AsyncSession, trip_id: uuid.UUID, budget: Budget | None
) -> BudgetView:
    result = await session.execute(
        select(Expense.category, Expense.amount).where(Expense.trip_id == trip_id)
    )
    expenses = [(category, Decimal(amount)) for category, amount in result.all()]

    if budget is None:
        summary = summarize_budget(Decimal("0"), get_settings().default_currency, {}, expenses)
        return BudgetView.from_summary(summary, trip_id=str(trip_id), budget_id=None)

    summary = summarize_budget(
        Decimal(budget.total_budget),
        budget.currency,
        {name: Decimal(amount) for name, amount in (budget.category_budgets or {}).items()},
        expenses,
    )
    return BudgetView.from_summary(summary, trip_id=str(trip_id), budget_id=str(budget.budget_id))
