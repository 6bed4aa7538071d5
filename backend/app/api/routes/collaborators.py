"""Collaborator endpoints - invitations, role changes, and removal.

Invitees answer an invitation through ``/invitations/{collaborator_id}``
because they have no accepted access to the trip yet.
"""

import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Collaborator, Trip, User
from backend.app.db.queries import get_trip_access
from backend.app.errors import ForbiddenError, NotFoundError, ValidationError
from backend.app.models.collaboration import CollaboratorView
from backend.app.models.common import MANAGE_ROLES, CollaboratorRole, InvitationStatus
from backend.app.utils.logging import event_logger

router = APIRouter(tags=["collaborators"])

InvitableRole = Literal["viewer", "editor", "admin"]


class InviteCollaboratorRequest(BaseModel):
    email: str = Field(..., max_length=320, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    role: InvitableRole = "viewer"


class UpdateRoleRequest(BaseModel):
    role: InvitableRole


class CollaboratorListResponse(BaseModel):
    collaborators: list[CollaboratorView]


def to_collaborator_view(collaborator: Collaborator, email: str) -> CollaboratorView:
    return CollaboratorView(
        id=str(collaborator.collaborator_id),
        trip_id=str(collaborator.trip_id),
        user_id=str(collaborator.user_id),
        email=email,
        role=collaborator.role,
        status=collaborator.status,
        invited_by=str(collaborator.invited_by),
        invited_at=collaborator.invited_at,
        joined_at=collaborator.joined_at,
    )


@router.get("/trips/{trip_id}/collaborators", response_model=CollaboratorListResponse)
async def list_collaborators(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollaboratorListResponse:
    """List every collaborator row of a trip, pending and declined included."""
    await get_trip_access(session, trip_id, ctx)
    result = await session.execute(
        select(Collaborator, User.email)
        .join(User, User.user_id == Collaborator.user_id)
        .where(Collaborator.trip_id == trip_id)
        .order_by(Collaborator.invited_at.asc())
    )
    return CollaboratorListResponse(
        collaborators=[to_collaborator_view(row, email) for row, email in result.all()]
    )


@router.post(
    "/trips/{trip_id}/collaborators",
    response_model=CollaboratorView,
    status_code=status.HTTP_201_CREATED,
)
async def invite_collaborator(
    trip_id: uuid.UUID,
    request: InviteCollaboratorRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollaboratorView:
    """Invite an existing user by email (owner or admin).

    Only the trip creator may invite admins. A declined invitation may be
    re-sent; pending and accepted ones may not.
    """
    access = await get_trip_access(session, trip_id, ctx, roles=MANAGE_ROLES)
    if request.role == CollaboratorRole.admin.value and not access.is_creator:
        raise ForbiddenError("Only the trip owner can invite administrators")

    result = await session.execute(select(User).where(User.email == request.email.lower()))
    invitee = result.scalar_one_or_none()
    if invitee is None:
        raise NotFoundError("User not found")
    if invitee.user_id == access.trip.created_by:
        raise ValidationError("Cannot invite the trip owner as a collaborator")

    result = await session.execute(
        select(Collaborator).where(
            Collaborator.trip_id == trip_id, Collaborator.user_id == invitee.user_id
        )
    )
    collaborator = result.scalar_one_or_none()

    if collaborator is None:
        collaborator = Collaborator(
            collaborator_id=uuid.uuid4(),
            trip_id=trip_id,
            user_id=invitee.user_id,
            role=request.role,
            status=InvitationStatus.pending.value,
            invited_by=ctx.user_id,
        )
        session.add(collaborator)
    elif collaborator.status == InvitationStatus.accepted.value:
        raise ValidationError("User is already a collaborator on this trip")
    elif collaborator.status == InvitationStatus.pending.value:
        raise ValidationError("An invitation has already been sent to this user")
    else:
        collaborator.role = request.role
        collaborator.status = InvitationStatus.pending.value
        collaborator.invited_by = ctx.user_id
        collaborator.invited_at = datetime.now(timezone.utc)
        collaborator.joined_at = None

    await session.commit()

    event_logger.log_event(
        ctx, "collaborator_invited", trip_id, invitee_id=invitee.user_id, role=request.role
    )
    return to_collaborator_view(collaborator, invitee.email)


@router.patch(
    "/trips/{trip_id}/collaborators/{collaborator_id}", response_model=CollaboratorView
)
async def update_collaborator_role(
    trip_id: uuid.UUID,
    collaborator_id: uuid.UUID,
    request: UpdateRoleRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollaboratorView:
    """Change a collaborator's role (owner or admin)."""
    access = await get_trip_access(session, trip_id, ctx, roles=MANAGE_ROLES)
    collaborator, email = await _get_collaborator(session, trip_id, collaborator_id)

    admin_involved = CollaboratorRole.admin.value in (collaborator.role, request.role)
    if admin_involved and not access.is_creator:
        raise ForbiddenError("Only the trip owner can manage administrator roles")
    if collaborator.user_id == ctx.user_id:
        raise ValidationError("You cannot change your own role")

    old_role = collaborator.role
    collaborator.role = request.role
    await session.commit()

    event_logger.log_event(
        ctx,
        "collaborator_role_changed",
        trip_id,
        collaborator_id=collaborator_id,
        old_role=old_role,
        new_role=request.role,
    )
    return to_collaborator_view(collaborator, email)


@router.delete(
    "/trips/{trip_id}/collaborators/{collaborator_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_collaborator(
    trip_id: uuid.UUID,
    collaborator_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Remove a collaborator (owner or admin). The creator is never removable."""
    access = await get_trip_access(session, trip_id, ctx, roles=MANAGE_ROLES)
    collaborator, _ = await _get_collaborator(session, trip_id, collaborator_id)

    if collaborator.user_id == access.trip.created_by:
        raise ValidationError("Cannot remove the trip owner")
    if collaborator.role == CollaboratorRole.admin.value and not access.is_creator:
        raise ForbiddenError("Only the trip owner can remove administrators")

    await session.execute(
        delete(Collaborator).where(Collaborator.collaborator_id == collaborator_id)
    )
    await session.commit()

    event_logger.log_event(
        ctx, "collaborator_removed", trip_id, removed_user_id=collaborator.user_id
    )


@router.post("/invitations/{collaborator_id}/accept", response_model=CollaboratorView)
async def accept_invitation(
    collaborator_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollaboratorView:
    """Accept a pending invitation addressed to the current user."""
    return await _answer_invitation(session, collaborator_id, ctx, InvitationStatus.accepted)


@router.post("/invitations/{collaborator_id}/decline", response_model=CollaboratorView)
async def decline_invitation(
    collaborator_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollaboratorView:
    """Decline a pending invitation addressed to the current user."""
    return await _answer_invitation(session, collaborator_id, ctx, InvitationStatus.declined)


async def _answer_invitation(
    session: AsyncSession,
    collaborator_id: uuid.UUID,
    ctx: RequestContext,
    answer: InvitationStatus,
) -> CollaboratorView:
    result = await session.execute(
        select(Collaborator, User.email)
        .join(User, User.user_id == Collaborator.user_id)
        .join(Trip, Trip.trip_id == Collaborator.trip_id)
        .where(Collaborator.collaborator_id == collaborator_id, Trip.deleted_at.is_(None))
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Invitation not found")
    collaborator, email = row

    if collaborator.user_id != ctx.user_id:
        raise ForbiddenError("This invitation is not addressed to you")
    if collaborator.status != InvitationStatus.pending.value:
        raise ValidationError(f"Invitation has already been {collaborator.status}")

    collaborator.status = answer.value
    if answer == InvitationStatus.accepted:
        collaborator.joined_at = datetime.now(timezone.utc)
    await session.commit()

    event_logger.log_event(ctx, f"invitation_{answer.value}", collaborator.trip_id)
    return to_collaborator_view(collaborator, email)


async def _get_collaborator(
    session: AsyncSession, trip_id: uuid.UUID, collaborator_id: uuid.UUID
) -> tuple[Collaborator, str]:
    result = await session.execute(
        select(Collaborator, User.email)
        .join(User, User.user_id == Collaborator.user_id)
        .where(
            Collaborator.collaborator_id == collaborator_id,
            Collaborator.trip_id == trip_id,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Collaborator not found")
    collaborator, email = row
    return collaborator, email
