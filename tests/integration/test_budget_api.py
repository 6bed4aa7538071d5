"""Integration tests for budget endpoints."""

import pytest
from httpx import AsyncClient

from tests.helpers import FRIEND_ID, OWNER_ID, add_member, auth, create_trip


async def add_expense(client: AsyncClient, trip_id: str, category: str, amount: float) -> None:
    response = await client.post(
        f"/trips/{trip_id}/expenses",
        json={
            "category": category,
            "description": f"{category} spend",
            "amount": amount,
            "currency": "USD",
            "date": "2024-06-03T12:00:00Z",
        },
        headers=auth(OWNER_ID),
    )
    assert response.status_code == 201, response.text


class TestGetBudget:
    """GET /trips/{trip_id}/budget."""

    @pytest.mark.asyncio
    async def test_trip_without_budget_reports_zero_usd(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        response = await client.get(f"/trips/{trip['id']}/budget", headers=auth(OWNER_ID))

        assert response.status_code == 200
        data = response.json()
        assert data["budget_id"] is None
        assert data["total_budget"] == 0.0
        assert data["currency"] == "USD"
        assert data["percentage_spent"] == 0.0
        assert set(data["category_budgets"]) == {
            "accommodation",
            "food",
            "activities",
            "transport",
            "shopping",
            "other",
        }

        # Reading does not create a budget
        detail = await client.get(f"/trips/{trip['id']}", headers=auth(OWNER_ID))
        assert detail.json()["budget"] is None

    @pytest.mark.asyncio
    async def test_spent_is_derived_from_expenses(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await client.patch(
            f"/trips/{trip['id']}/budget",
            json={"total_budget": 1000, "category_budgets": {"food": 200, "activities": 50}},
            headers=auth(OWNER_ID),
        )
        await add_expense(client, trip["id"], "food", 75.0)
        await add_expense(client, trip["id"], "activities", 80.0)

        response = await client.get(f"/trips/{trip['id']}/budget", headers=auth(OWNER_ID))

        data = response.json()
        food = data["category_budgets"]["food"]
        assert food == {"budgeted": 200.0, "spent": 75.0, "remaining": 125.0, "is_over_budget": False}
        activities = data["category_budgets"]["activities"]
        assert activities["remaining"] == -30.0
        assert activities["is_over_budget"] is True
        assert data["total_spent"] == 155.0
        assert data["total_remaining"] == 845.0
        assert data["percentage_spent"] == 15.5
        assert data["is_over_budget"] is False
        assert data["warnings"] == ["activities is over budget by 30.00 USD"]


class TestUpdateBudget:
    """PATCH /trips/{trip_id}/budget."""

    @pytest.mark.asyncio
    async def test_total_defaults_to_category_sum(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        response = await client.patch(
            f"/trips/{trip['id']}/budget",
            json={"currency": "EUR", "category_budgets": {"accommodation": 600, "food": 250.5}},
            headers=auth(OWNER_ID),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["budget_id"] is not None
        assert data["currency"] == "EUR"
        assert data["total_budget"] == 850.5

    @pytest.mark.asyncio
    async def test_category_budgets_merge(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await client.patch(
            f"/trips/{trip['id']}/budget",
            json={"category_budgets": {"food": 100}},
            headers=auth(OWNER_ID),
        )

        response = await client.patch(
            f"/trips/{trip['id']}/budget",
            json={"total_budget": 500, "category_budgets": {"transport": 120}},
            headers=auth(OWNER_ID),
        )

        data = response.json()
        assert data["total_budget"] == 500.0
        assert data["category_budgets"]["food"]["budgeted"] == 100.0
        assert data["category_budgets"]["transport"]["budgeted"] == 120.0

    @pytest.mark.asyncio
    async def test_rejects_unknown_category_and_negative_amounts(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        unknown = await client.patch(
            f"/trips/{trip['id']}/budget",
            json={"category_budgets": {"spa": 100}},
            headers=auth(OWNER_ID),
        )
        negative = await client.patch(
            f"/trips/{trip['id']}/budget", json={"total_budget": -5}, headers=auth(OWNER_ID)
        )

        assert unknown.status_code == 400
        assert negative.status_code == 400

    @pytest.mark.asyncio
    async def test_viewer_cannot_update(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await add_member(client, trip["id"], role="viewer")

        response = await client.patch(
            f"/trips/{trip['id']}/budget", json={"total_budget": 10}, headers=auth(FRIEND_ID)
        )

        assert response.status_code == 403
