"""Integration tests for itinerary event endpoints."""

import pytest
from httpx import AsyncClient

from tests.helpers import FRIEND_ID, OWNER_ID, STRANGER_ID, add_member, auth, create_trip


async def create_event(client: AsyncClient, trip_id: str, **overrides: object) -> dict:
    body = {
        "type": "activity",
        "title": "Walking tour",
        "start_datetime": "2024-06-02T10:00:00Z",
        "end_datetime": "2024-06-02T12:00:00Z",
        "order": 0,
    }
    body.update(overrides)
    response = await client.post(f"/trips/{trip_id}/events", json=body, headers=auth(OWNER_ID))
    assert response.status_code == 201, response.text
    return response.json()


class TestEvents:
    """Event CRUD and ordering."""

    @pytest.mark.asyncio
    async def test_list_orders_by_start_then_order(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await create_event(client, trip["id"], title="Dinner", start_datetime="2024-06-02T20:00:00Z", end_datetime=None)
        await create_event(client, trip["id"], title="Museum", order=1)
        await create_event(client, trip["id"], title="Breakfast", start_datetime="2024-06-02T08:00:00Z", end_datetime=None)
        await create_event(client, trip["id"], title="Tour", order=0)

        response = await client.get(f"/trips/{trip['id']}/events", headers=auth(OWNER_ID))

        assert response.status_code == 200
        titles = [event["title"] for event in response.json()["events"]]
        assert titles == ["Breakfast", "Tour", "Museum", "Dinner"]

    @pytest.mark.asyncio
    async def test_create_with_location_and_cost(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        event = await create_event(
            client,
            trip["id"],
            type="hotel",
            title="Memmo Alfama",
            location={"name": "Memmo Alfama", "lat": 38.71, "lon": -9.13},
            cost={"amount": 180.5, "currency": "EUR"},
            confirmation_number="MA-1234",
        )

        assert event["type"] == "hotel"
        assert event["location"]["name"] == "Memmo Alfama"
        assert event["cost"] == {"amount": 180.5, "currency": "EUR"}
        assert event["confirmation_number"] == "MA-1234"
        assert event["created_by"] == str(OWNER_ID)

    @pytest.mark.asyncio
    async def test_create_rejects_end_before_start(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        response = await client.post(
            f"/trips/{trip['id']}/events",
            json={
                "type": "activity",
                "title": "Backwards",
                "start_datetime": "2024-06-02T10:00:00Z",
                "end_datetime": "2024-06-02T09:00:00Z",
            },
            headers=auth(OWNER_ID),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_viewer_cannot_create(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await add_member(client, trip["id"], role="viewer")

        response = await client.post(
            f"/trips/{trip['id']}/events",
            json={"type": "activity", "title": "Sneaky", "start_datetime": "2024-06-02T10:00:00Z"},
            headers=auth(FRIEND_ID),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_editor_can_update(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await add_member(client, trip["id"], role="editor")
        event = await create_event(client, trip["id"])

        response = await client.patch(
            f"/trips/{trip['id']}/events/{event['id']}",
            json={"title": "Food tour", "cost": {"amount": 55, "currency": "EUR"}, "notes": None},
            headers=auth(FRIEND_ID),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Food tour"
        assert data["cost"] == {"amount": 55.0, "currency": "EUR"}
        assert data["start_datetime"].startswith("2024-06-02T10:00:00")

    @pytest.mark.asyncio
    async def test_update_rejects_end_before_existing_start(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        event = await create_event(client, trip["id"])

        response = await client.patch(
            f"/trips/{trip['id']}/events/{event['id']}",
            json={"end_datetime": "2024-06-01T00:00:00Z"},
            headers=auth(OWNER_ID),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_event(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        event = await create_event(client, trip["id"])

        response = await client.delete(
            f"/trips/{trip['id']}/events/{event['id']}", headers=auth(OWNER_ID)
        )
        assert response.status_code == 204

        again = await client.delete(
            f"/trips/{trip['id']}/events/{event['id']}", headers=auth(OWNER_ID)
        )
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_stranger_cannot_list(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        response = await client.get(f"/trips/{trip['id']}/events", headers=auth(STRANGER_ID))

        assert response.status_code == 403


class TestReorder:
    """POST /trips/{trip_id}/events/reorder."""

    @pytest.mark.asyncio
    async def test_reorder_same_day_events(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        first = await create_event(client, trip["id"], title="First", order=0)
        second = await create_event(client, trip["id"], title="Second", order=1)

        response = await client.post(
            f"/trips/{trip['id']}/events/reorder",
            json={"events": [{"event_id": first["id"], "order": 1}, {"event_id": second["id"], "order": 0}]},
            headers=auth(OWNER_ID),
        )

        assert response.status_code == 200
        assert [event["title"] for event in response.json()["events"]] == ["Second", "First"]

    @pytest.mark.asyncio
    async def test_reorder_rejects_foreign_event(self, client: AsyncClient) -> None:
        """Events from another trip are rejected and nothing changes."""
        trip = await create_trip(client)
        other = await create_trip(client, name="Other")
        mine = await create_event(client, trip["id"], title="Mine", order=0)
        theirs = await create_event(client, other["id"], title="Theirs", order=0)

        response = await client.post(
            f"/trips/{trip['id']}/events/reorder",
            json={"events": [{"event_id": mine["id"], "order": 5}, {"event_id": theirs["id"], "order": 6}]},
            headers=auth(OWNER_ID),
        )

        assert response.status_code == 400
        listed = await client.get(f"/trips/{trip['id']}/events", headers=auth(OWNER_ID))
        assert listed.json()["events"][0]["order"] == 0
