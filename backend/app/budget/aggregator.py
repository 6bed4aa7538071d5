"""Budget aggregation: budgeted vs. spent per category and overall.

Spent amounts are always derived from expenses at read time; nothing here
touches storage. Expenses are assumed to be in the budget currency already.
Over-budget categories produce warnings, not errors.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from backend.app.models.common import ExpenseCategory, quantize_money

ZERO = Decimal("0")


@dataclass(frozen=True)
class CategorySummary:
    """Budget status of one spending category."""

    category: ExpenseCategory
    budgeted: Decimal
    spent: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.budgeted - self.spent

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0


@dataclass(frozen=True)
class BudgetSummary:
    """Budget status of a whole trip."""

    total_budget: Decimal
    currency: str
    categories: dict[ExpenseCategory, CategorySummary]
    total_spent: Decimal
    warnings: list[str] = field(default_factory=list)

    @property
    def total_remaining(self) -> Decimal:
        return self.total_budget - self.total_spent

    @property
    def is_over_budget(self) -> bool:
        return self.total_spent > self.total_budget

    @property
    def percentage_spent(self) -> Decimal:
        if self.total_budget <= 0:
            return ZERO
        return quantize_money(self.total_spent / self.total_budget * 100)


def coerce_category(value: str) -> ExpenseCategory:
    """Map a stored category name onto a known category, defaulting to other."""
    try:
        return ExpenseCategory(value.lower())
    except ValueError:
        return ExpenseCategory.other


def summarize_budget(
    total_budget: Decimal,
    currency: str,
    category_budgets: Mapping[str, Decimal],
    expenses: Iterable[tuple[str, Decimal]],
) -> BudgetSummary:
    """Aggregate expenses against a trip budget.

    Args:
        total_budget: Trip-level budget
        currency: Budget currency
        category_budgets: Budgeted amount per category name; missing
            categories are budgeted at zero
        expenses: (category, amount) pairs in the budget currency

    Returns:
        Summary with every known category present
    """
    budgeted: dict[ExpenseCategory, Decimal] = {category: ZERO for category in ExpenseCategory}
    for name, amount in category_budgets.items():
        category = coerce_category(name)
        budgeted[category] = budgeted[category] + Decimal(amount)

    spent: dict[ExpenseCategory, Decimal] = {category: ZERO for category in ExpenseCategory}
    total_spent = ZERO
    for name, amount in expenses:
        category = coerce_category(name)
        spent[category] += amount
        total_spent += amount

    categories = {
        category: CategorySummary(category=category, budgeted=budgeted[category], spent=spent[category])
        for category in ExpenseCategory
    }

    warnings: list[str] = [
        f"{summary.category.value} is over budget by {-summary.remaining:.2f} {currency}"
        for summary in categories.values()
        if summary.is_over_budget
    ]
    if total_spent > total_budget:
        warnings.append(
            f"Trip is over budget by {total_spent - total_budget:.2f} {currency}"
        )

    return BudgetSummary(
        total_budget=Decimal(total_budget),
        currency=currency,
        categories=categories,
        total_spent=total_spent,
        warnings=warnings,
    )
