"""Unit tests for budget aggregation."""

from decimal import Decimal

import pytest

from backend.app.budget.aggregator import coerce_category, summarize_budget
from backend.app.models.common import ExpenseCategory


@pytest.fixture
def category_budgets() -> dict[str, Decimal]:
    return {"accommodation": Decimal("800"), "food": Decimal("300"), "activities": Decimal("150")}


class TestSummarizeBudget:
    """Budgeted vs. spent aggregation."""

    def test_every_category_present_with_no_expenses(
        self, category_budgets: dict[str, Decimal]
    ) -> None:
        """Remaining equals budgeted when nothing has been spent."""
        summary = summarize_budget(Decimal("1250"), "EUR", category_budgets, [])

        assert set(summary.categories) == set(ExpenseCategory)
        for item in summary.categories.values():
            assert item.spent == Decimal("0")
            assert item.remaining == item.budgeted - item.spent
        assert summary.categories[ExpenseCategory.shopping].budgeted == Decimal("0")
        assert summary.total_spent == Decimal("0")
        assert summary.percentage_spent == Decimal("0.00")
        assert summary.warnings == []

    def test_spent_is_summed_per_category(self, category_budgets: dict[str, Decimal]) -> None:
        expenses = [
            ("food", Decimal("45.50")),
            ("food", Decimal("29.50")),
            ("accommodation", Decimal("400")),
        ]

        summary = summarize_budget(Decimal("1250"), "EUR", category_budgets, expenses)

        food = summary.categories[ExpenseCategory.food]
        assert food.spent == Decimal("75.00")
        assert food.remaining == Decimal("225.00")
        assert not food.is_over_budget
        assert summary.total_spent == Decimal("475.00")
        assert summary.total_remaining == Decimal("775.00")
        assert summary.percentage_spent == Decimal("38.00")

    def test_over_budget_category_warns(self, category_budgets: dict[str, Decimal]) -> None:
        """Negative remaining is a warning, not an error."""
        summary = summarize_budget(
            Decimal("1250"), "EUR", category_budgets, [("activities", Decimal("200"))]
        )

        activities = summary.categories[ExpenseCategory.activities]
        assert activities.remaining == Decimal("-50")
        assert activities.is_over_budget
        assert summary.warnings == ["activities is over budget by 50.00 EUR"]
        assert not summary.is_over_budget

    def test_trip_over_budget_warns(self) -> None:
        summary = summarize_budget(
            Decimal("100"), "USD", {"food": Decimal("100")}, [("food", Decimal("130"))]
        )

        assert summary.is_over_budget
        assert summary.total_remaining == Decimal("-30")
        assert "food is over budget by 30.00 USD" in summary.warnings
        assert "Trip is over budget by 30.00 USD" in summary.warnings

    def test_unknown_category_counts_as_other(self) -> None:
        summary = summarize_budget(Decimal("100"), "USD", {}, [("souvenirs", Decimal("12"))])

        assert summary.categories[ExpenseCategory.other].spent == Decimal("12")

    def test_zero_total_budget_reports_zero_percentage(self) -> None:
        summary = summarize_budget(Decimal("0"), "USD", {}, [("food", Decimal("10"))])

        assert summary.percentage_spent == Decimal("0")
        assert summary.is_over_budget


@pytest.mark.parametrize(
    "value,expected",
    [
        ("food", ExpenseCategory.food),
        ("FOOD", ExpenseCategory.food),
        ("transport", ExpenseCategory.transport),
        ("spa", ExpenseCategory.other),
    ],
)
def test_coerce_category(value: str, expected: ExpenseCategory) -> None:
    assert coerce_category(value) == expected
