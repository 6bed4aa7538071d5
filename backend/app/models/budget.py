"""Budget summary views."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from backend.app.models.common import MoneyAmount

if TYPE_CHECKING:
    from backend.app.budget.aggregator import BudgetSummary


class CategoryBudgetView(BaseModel):
    """Budgeted vs. spent for one category."""

    budgeted: MoneyAmount
    spent: MoneyAmount
    remaining: MoneyAmount
    is_over_budget: bool


class BudgetView(BaseModel):
    """Trip budget with derived spending."""

    budget_id: str | None
    trip_id: str
    total_budget: MoneyAmount
    currency: str
    category_budgets: dict[str, CategoryBudgetView]
    total_spent: MoneyAmount
    total_remaining: MoneyAmount
    percentage_spent: MoneyAmount
    is_over_budget: bool
    warnings: list[str]

    @classmethod
    def from_summary(
        cls, summary: BudgetSummary, trip_id: str, budget_id: str | None
    ) -> BudgetView:
        return cls(
            budget_id=budget_id,
            trip_id=trip_id,
            total_budget=summary.total_budget,
            currency=summary.currency,
            category_budgets={
                category.value: CategoryBudgetView(
                    budgeted=item.budgeted,
                    spent=item.spent,
                    remaining=item.remaining,
                    is_over_budget=item.is_over_budget,
                )
                for category, item in summary.categories.items()
            },
            total_spent=summary.total_spent,
            total_remaining=summary.total_remaining,
            percentage_spent=summary.percentage_spent,
            is_over_budget=summary.is_over_budget,
            warnings=summary.warnings,
        )
