"""Trip endpoints - CRUD, archiving, tags, and duplication."""

import uuid
from datetime import date, datetime, timezone
from typing import Annotated, Literal

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.api.views import load_trip_detail, to_tag_view, to_trip_summary
from backend.app.config import get_settings
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Tag, Trip
from backend.app.db.queries import get_trip_access, query_visible_trips
from backend.app.errors import ForbiddenError, NotFoundError, ValidationError
from backend.app.models.common import EDIT_ROLES, Visibility
from backend.app.models.trip import TagView, TripDetail, TripSummary
from backend.app.trips.duplicate import duplicate_trip

router = APIRouter(prefix="/trips", tags=["trips"])


class CreateTripRequest(BaseModel):
    """Request body for POST /trips."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    start_date: date
    end_date: date
    destinations: list[str] = Field(default_factory=list)
    visibility: Visibility = Visibility.private

    @model_validator(mode="after")
    def check_dates(self) -> "CreateTripRequest":
        if self.end_date < self.start_date:
            raise ValueError("End date must be after or equal to start date")
        return self


class UpdateTripRequest(BaseModel):
    """Request body for PATCH /trips/{trip_id}. Omitted fields are unchanged."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    start_date: date | None = None
    end_date: date | None = None
    destinations: list[str] | None = None
    visibility: Visibility | None = None
    is_archived: bool | None = None


class TripListResponse(BaseModel):
    """Response for GET /trips."""

    trips: list[TripSummary]
    total: int
    page: int
    limit: int


class DuplicateTripRequest(BaseModel):
    """Optional body for POST /trips/{trip_id}/duplicate."""

    start_date: date | None = None


class DuplicateTripResponse(BaseModel):
    """Response for POST /trips/{trip_id}/duplicate."""

    message: str
    new_trip_id: str
    original_trip_id: str
    trip: TripDetail


class CreateTagRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: str | None = Field(None, pattern="^#[0-9A-Fa-f]{6}$")


@router.get("", response_model=TripListResponse)
async def list_trips(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    status_filter: Annotated[
        Literal["active", "archived", "all"], Query(alias="status")
    ] = "active",
    search: Annotated[str | None, Query(max_length=200)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> TripListResponse:
    """List trips the user created or collaborates on."""
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)

    query = query_visible_trips(ctx)
    if status_filter == "active":
        query = query.where(Trip.is_archived.is_(False))
    elif status_filter == "archived":
        query = query.where(Trip.is_archived.is_(True))
    if search:
        query = query.where(Trip.name.ilike(f"%{search}%"))

    total = (await session.execute(select(func.count()).select_from(query.subquery()))).scalar_one()

    result = await session.execute(
        query.order_by(Trip.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    trips = [to_trip_summary(trip) for trip in result.scalars().all()]

    return TripListResponse(trips=trips, total=total, page=page, limit=limit)


@router.post("", response_model=TripDetail, status_code=status.HTTP_201_CREATED)
async def create_trip(
    request: CreateTripRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TripDetail:
    """Create a trip owned by the current user."""
    trip = Trip(
        trip_id=uuid.uuid4(),
        name=request.name,
        description=request.description,
        start_date=request.start_date,
        end_date=request.end_date,
        destinations=request.destinations,
        visibility=request.visibility.value,
        is_archived=False,
        created_by=ctx.user_id,
    )
    session.add(trip)
    await session.commit()

    return await load_trip_detail(session, trip.trip_id)


@router.get("/{trip_id}", response_model=TripDetail)
async def get_trip(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TripDetail:
    """Get a trip with its itinerary, budget structure, and tags."""
    await get_trip_access(session, trip_id, ctx)
    return await load_trip_detail(session, trip_id)


@router.patch("/{trip_id}", response_model=TripDetail)
async def update_trip(
    trip_id: uuid.UUID,
    request: UpdateTripRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TripDetail:
    """Update trip fields (owner, admin, or editor)."""
    access = await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)
    trip = access.trip

    # Only description may be cleared; null for any other field means "unchanged"
    changes = {
        key: value
        for key, value in request.model_dump(exclude_unset=True).items()
        if value is not None or key == "description"
    }
    start = changes.get("start_date", trip.start_date)
    end = changes.get("end_date", trip.end_date)
    if end < start:
        raise ValidationError("End date must be after or equal to start date")

    if "visibility" in changes:
        changes["visibility"] = Visibility(changes["visibility"]).value
    for key, value in changes.items():
        setattr(trip, key, value)

    await session.commit()
    return await load_trip_detail(session, trip_id)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Soft-delete a trip. Only its creator may delete it."""
    access = await get_trip_access(session, trip_id, ctx)
    if not access.is_creator:
        raise ForbiddenError("Only the trip creator can delete this trip")

    access.trip.deleted_at = datetime.now(timezone.utc)
    await session.commit()


@router.post("/{trip_id}/archive", response_model=TripSummary)
async def archive_trip(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TripSummary:
    """Archive a trip."""
    return await _set_archived(session, trip_id, ctx, archived=True)


@router.delete("/{trip_id}/archive", response_model=TripSummary)
async def unarchive_trip(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TripSummary:
    """Restore an archived trip."""
    return await _set_archived(session, trip_id, ctx, archived=False)


async def _set_archived(
    session: AsyncSession, trip_id: uuid.UUID, ctx: RequestContext, archived: bool
) -> TripSummary:
    access = await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)
    access.trip.is_archived = archived
    await session.commit()
    return to_trip_summary(access.trip)


@router.post(
    "/{trip_id}/duplicate",
    response_model=DuplicateTripResponse,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_trip_endpoint(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    request: Annotated[DuplicateTripRequest | None, Body()] = None,
) -> DuplicateTripResponse:
    """Duplicate a trip's itinerary, budget structure, and tags.

    The copy keeps the original duration, starts on ``start_date`` (today
    by default), is private, and is owned by the current user.
    """
    start_date = request.start_date if request else None
    new_trip_id = await duplicate_trip(session, trip_id, ctx, start_date=start_date)

    return DuplicateTripResponse(
        message="Trip duplicated successfully",
        new_trip_id=str(new_trip_id),
        original_trip_id=str(trip_id),
        trip=await load_trip_detail(session, new_trip_id),
    )


@router.get("/{trip_id}/tags", response_model=list[TagView])
async def list_tags(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[TagView]:
    """List a trip's tags."""
    await get_trip_access(session, trip_id, ctx)
    result = await session.execute(select(Tag).where(Tag.trip_id == trip_id).order_by(Tag.name))
    return [to_tag_view(tag) for tag in result.scalars().all()]


@router.post("/{trip_id}/tags", response_model=TagView, status_code=status.HTTP_201_CREATED)
async def create_tag(
    trip_id: uuid.UUID,
    request: CreateTagRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TagView:
    """Attach a tag to a trip."""
    await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)
    tag = Tag(tag_id=uuid.uuid4(), trip_id=trip_id, name=request.name, color=request.color)
    session.add(tag)
    await session.commit()
    return to_tag_view(tag)


@router.delete("/{trip_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    trip_id: uuid.UUID,
    tag_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Remove a tag from a trip."""
    await get_trip_access(session, trip_id, ctx, roles=EDIT_ROLES)
    result = await session.execute(
        delete(Tag).where(Tag.tag_id == tag_id, Tag.trip_id == trip_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("Tag not found")
    await session.commit()
