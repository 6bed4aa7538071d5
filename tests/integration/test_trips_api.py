"""Integration tests for trip, archive, and tag endpoints."""

import uuid

import pytest
from httpx import AsyncClient

from tests.helpers import FRIEND_ID, OWNER_ID, STRANGER_ID, add_member, auth, create_trip


class TestAuth:
    """Authentication is required on trip routes."""

    @pytest.mark.asyncio
    async def test_missing_header_returns_401(self, client: AsyncClient) -> None:
        response = await client.get("/trips")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized - Please log in", "code": "UNAUTHORIZED"}

    @pytest.mark.asyncio
    async def test_unknown_user_returns_401(self, client: AsyncClient) -> None:
        response = await client.get("/trips", headers=auth(uuid.uuid4()))

        assert response.status_code == 401
        assert response.json()["error"] == "Unknown user"


class TestTripCrud:
    """Create, read, update, delete."""

    @pytest.mark.asyncio
    async def test_create_trip(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        assert trip["name"] == "Lisbon Summer"
        assert trip["start_date"] == "2024-06-01"
        assert trip["end_date"] == "2024-06-10"
        assert trip["visibility"] == "shared"
        assert trip["is_archived"] is False
        assert trip["created_by"] == str(OWNER_ID)
        assert trip["events"] == []
        assert trip["budget"] is None
        assert trip["event_count"] == 0

    @pytest.mark.asyncio
    async def test_create_rejects_end_before_start(self, client: AsyncClient) -> None:
        """Request validation failures map to 400 with field details."""
        response = await client.post(
            "/trips",
            json={"name": "Backwards", "start_date": "2024-06-10", "end_date": "2024-06-01"},
            headers=auth(OWNER_ID),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]

    @pytest.mark.asyncio
    async def test_get_trip_requires_access(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        response = await client.get(f"/trips/{trip['id']}", headers=auth(STRANGER_ID))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_get_missing_trip_returns_404(self, client: AsyncClient) -> None:
        response = await client.get(f"/trips/{uuid.uuid4()}", headers=auth(OWNER_ID))

        assert response.status_code == 404
        assert response.json()["error"] == "Trip not found"

    @pytest.mark.asyncio
    async def test_update_trip(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        response = await client.patch(
            f"/trips/{trip['id']}",
            json={"name": "Lisbon & Sintra", "description": None, "end_date": "2024-06-12"},
            headers=auth(OWNER_ID),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Lisbon & Sintra"
        assert data["description"] is None
        assert data["end_date"] == "2024-06-12"
        assert data["start_date"] == "2024-06-01"

    @pytest.mark.asyncio
    async def test_update_rejects_inverted_dates(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        response = await client.patch(
            f"/trips/{trip['id']}", json={"end_date": "2024-05-01"}, headers=auth(OWNER_ID)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_viewer_cannot_update(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await add_member(client, trip["id"], role="viewer")

        response = await client.patch(
            f"/trips/{trip['id']}", json={"name": "Mine now"}, headers=auth(FRIEND_ID)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_is_creator_only_and_soft(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await add_member(client, trip["id"], role="editor")

        forbidden = await client.delete(f"/trips/{trip['id']}", headers=auth(FRIEND_ID))
        assert forbidden.status_code == 403

        deleted = await client.delete(f"/trips/{trip['id']}", headers=auth(OWNER_ID))
        assert deleted.status_code == 204

        response = await client.get(f"/trips/{trip['id']}", headers=auth(OWNER_ID))
        assert response.status_code == 404


class TestTripListing:
    """GET /trips filters and pagination."""

    @pytest.mark.asyncio
    async def test_lists_created_and_collaborated_trips(self, client: AsyncClient) -> None:
        own = await create_trip(client, user_id=FRIEND_ID, name="Friend trip")
        shared = await create_trip(client, name="Shared trip")
        await create_trip(client, name="Not shared")
        await add_member(client, shared["id"])

        response = await client.get("/trips", headers=auth(FRIEND_ID))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {trip["id"] for trip in data["trips"]} == {own["id"], shared["id"]}

    @pytest.mark.asyncio
    async def test_pending_invitation_does_not_grant_listing(self, client: AsyncClient) -> None:
        trip = await create_trip(client)
        await client.post(
            f"/trips/{trip['id']}/collaborators",
            json={"email": "friend@example.com", "role": "viewer"},
            headers=auth(OWNER_ID),
        )

        response = await client.get("/trips", headers=auth(FRIEND_ID))

        assert response.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_status_and_search_filters(self, client: AsyncClient) -> None:
        lisbon = await create_trip(client, name="Lisbon")
        await create_trip(client, name="Kyoto")
        archived = await client.post(f"/trips/{lisbon['id']}/archive", headers=auth(OWNER_ID))
        assert archived.json()["is_archived"] is True

        active = await client.get("/trips", headers=auth(OWNER_ID))
        assert [trip["name"] for trip in active.json()["trips"]] == ["Kyoto"]

        only_archived = await client.get("/trips?status=archived", headers=auth(OWNER_ID))
        assert [trip["name"] for trip in only_archived.json()["trips"]] == ["Lisbon"]

        searched = await client.get("/trips?status=all&search=kyo", headers=auth(OWNER_ID))
        assert [trip["name"] for trip in searched.json()["trips"]] == ["Kyoto"]

        restored = await client.delete(f"/trips/{lisbon['id']}/archive", headers=auth(OWNER_ID))
        assert restored.json()["is_archived"] is False

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient) -> None:
        for index in range(3):
            await create_trip(client, name=f"Trip {index}")

        response = await client.get("/trips?page=2&limit=2", headers=auth(OWNER_ID))

        data = response.json()
        assert data["total"] == 3
        assert data["page"] == 2
        assert data["limit"] == 2
        assert len(data["trips"]) == 1


class TestTags:
    """Trip tags."""

    @pytest.mark.asyncio
    async def test_create_list_delete_tag(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        created = await client.post(
            f"/trips/{trip['id']}/tags",
            json={"name": "beach", "color": "#00AAFF"},
            headers=auth(OWNER_ID),
        )
        assert created.status_code == 201
        tag = created.json()

        listed = await client.get(f"/trips/{trip['id']}/tags", headers=auth(OWNER_ID))
        assert listed.json() == [{"id": tag["id"], "name": "beach", "color": "#00AAFF"}]

        deleted = await client.delete(
            f"/trips/{trip['id']}/tags/{tag['id']}", headers=auth(OWNER_ID)
        )
        assert deleted.status_code == 204

        missing = await client.delete(
            f"/trips/{trip['id']}/tags/{tag['id']}", headers=auth(OWNER_ID)
        )
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_rejects_bad_color(self, client: AsyncClient) -> None:
        trip = await create_trip(client)

        response = await client.post(
            f"/trips/{trip['id']}/tags", json={"name": "x", "color": "blue"}, headers=auth(OWNER_ID)
        )

        assert response.status_code == 400
