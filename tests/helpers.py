"""Test data and API helpers shared by the integration tests."""

import uuid

from httpx import AsyncClient

OWNER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
FRIEND_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")
STRANGER_ID = uuid.UUID("00000000-0000-0000-0000-000000000004")


def auth(user_id: uuid.UUID) -> dict[str, str]:
    """Authorization header for a user."""
    return {"Authorization": f"Bearer {user_id}"}


async def create_trip(
    client: AsyncClient,
    user_id: uuid.UUID = OWNER_ID,
    **overrides: object,
) -> dict:
    """Create a trip through the API and return its JSON body."""
    body = {
        "name": "Lisbon Summer",
        "description": "A week by the sea",
        "start_date": "2024-06-01",
        "end_date": "2024-06-10",
        "destinations": ["Lisbon", "Porto"],
        "visibility": "shared",
    }
    body.update(overrides)
    response = await client.post("/trips", json=body, headers=auth(user_id))
    assert response.status_code == 201, response.text
    return response.json()


async def add_member(
    client: AsyncClient,
    trip_id: str,
    user_id: uuid.UUID = FRIEND_ID,
    email: str = "friend@example.com",
    role: str = "editor",
) -> dict:
    """Invite a user as the owner and accept on their behalf."""
    response = await client.post(
        f"/trips/{trip_id}/collaborators",
        json={"email": email, "role": role},
        headers=auth(OWNER_ID),
    )
    assert response.status_code == 201, response.text
    invitation = response.json()

    response = await client.post(
        f"/invitations/{invitation['id']}/accept", headers=auth(user_id)
    )
    assert response.status_code == 200, response.text
    return response.json()
