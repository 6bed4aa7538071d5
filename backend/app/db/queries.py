"""Access-checked query helpers.

Every trip-scoped route resolves the trip through ``get_trip_access`` first so
authorization short-circuits before any computation happens.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.context import RequestContext
from backend.app.db.models import Collaborator, Trip
from backend.app.errors import ForbiddenError, NotFoundError
from backend.app.models.common import CollaboratorRole, InvitationStatus


@dataclass(frozen=True)
class TripAccess:
    """A trip together with the requesting user's effective role on it."""

    trip: Trip
    role: CollaboratorRole
    is_creator: bool = False


def query_visible_trips(ctx: RequestContext) -> Select[tuple[Trip]]:
    """Query trips the user created or has accepted an invitation to.

    Args:
        ctx: Request context with user_id

    Returns:
        Select over non-deleted trips
    """
    accepted = select(Collaborator.trip_id).where(
        Collaborator.user_id == ctx.user_id,
        Collaborator.status == InvitationStatus.accepted.value,
    )
    return select(Trip).where(
        Trip.deleted_at.is_(None),
        or_(Trip.created_by == ctx.user_id, Trip.trip_id.in_(accepted)),
    )


async def get_trip_access(
    session: AsyncSession,
    trip_id: uuid.UUID,
    ctx: RequestContext,
    roles: Iterable[CollaboratorRole] | None = None,
) -> TripAccess:
    """Load a trip and check the user may act on it.

    The creator always acts as owner. Other users need an accepted
    collaborator row; when ``roles`` is given the role must be one of them.

    Raises:
        NotFoundError: Trip does not exist or is deleted
        ForbiddenError: User has no access, or lacks a required role
    """
    result = await session.execute(
        select(Trip).where(Trip.trip_id == trip_id, Trip.deleted_at.is_(None))
    )
    trip = result.scalar_one_or_none()
    if trip is None:
        raise NotFoundError("Trip not found")

    if trip.created_by == ctx.user_id:
        access = TripAccess(trip=trip, role=CollaboratorRole.owner, is_creator=True)
    else:
        role = await _accepted_role(session, trip_id, ctx.user_id)
        if role is None:
            raise ForbiddenError("You do not have access to this trip")
        access = TripAccess(trip=trip, role=role)

    if roles is not None and access.role not in set(roles):
        raise ForbiddenError("You do not have permission to perform this action on this trip")

    return access


async def _accepted_role(
    session: AsyncSession, trip_id: uuid.UUID, user_id: uuid.UUID
) -> CollaboratorRole | None:
    result = await session.execute(
        select(Collaborator.role).where(
            Collaborator.trip_id == trip_id,
            Collaborator.user_id == user_id,
            Collaborator.status == InvitationStatus.accepted.value,
        )
    )
    role = result.scalar_one_or_none()
    return CollaboratorRole(role) if role is not None else None


async def list_member_ids(session: AsyncSession, trip: Trip) -> set[uuid.UUID]:
    """Return the creator plus every accepted collaborator of a trip."""
    result = await session.execute(
        select(Collaborator.user_id).where(
            Collaborator.trip_id == trip.trip_id,
            Collaborator.status == InvitationStatus.accepted.value,
        )
    )
    members = set(result.scalars().all())
    members.add(trip.created_by)
    return members
