"""Poll endpoints - fixed-option questions with single or multiple choice."""

import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.api.auth import get_current_context
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Poll, PollOption, PollVote, as_utc
from backend.app.db.queries import get_trip_access
from backend.app.errors import ForbiddenError, NotFoundError, ValidationError
from backend.app.models.collaboration import PollOptionView, PollView
from backend.app.models.common import MANAGE_ROLES

router = APIRouter(prefix="/trips/{trip_id}/polls", tags=["polls"])


class CreatePollRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=500)
    options: list[Annotated[str, Field(min_length=1, max_length=200)]] = Field(
        ..., min_length=2, max_length=20
    )
    allow_multiple_votes: bool = False
    expires_at: datetime | None = None


class VotePollRequest(BaseModel):
    option_ids: list[uuid.UUID] = Field(..., min_length=1)


class PollListResponse(BaseModel):
    polls: list[PollView]


def to_poll_view(poll: Poll, counts: Counter[uuid.UUID]) -> PollView:
    options = [
        PollOptionView(
            id=str(option.option_id),
            text=option.text,
            order=option.order,
            vote_count=counts[option.option_id],
        )
        for option in poll.options
    ]
    return PollView(
        id=str(poll.poll_id),
        trip_id=str(poll.trip_id),
        created_by=str(poll.created_by),
        question=poll.question,
        allow_multiple_votes=poll.allow_multiple_votes,
        status=poll.status,
        expires_at=poll.expires_at,
        options=options,
        total_votes=sum(option.vote_count for option in options),
        created_at=poll.created_at,
    )


async def get_poll_or_404(session: AsyncSession, trip_id: uuid.UUID, poll_id: uuid.UUID) -> Poll:
    result = await session.execute(
        select(Poll)
        .where(Poll.poll_id == poll_id, Poll.trip_id == trip_id)
        .options(selectinload(Poll.options))
    )
    poll = result.scalar_one_or_none()
    if poll is None:
        raise NotFoundError("Poll not found")
    return poll


async def count_votes(session: AsyncSession, poll_id: uuid.UUID) -> Counter[uuid.UUID]:
    rows = await session.execute(select(PollVote.option_id).where(PollVote.poll_id == poll_id))
    return Counter(rows.scalars().all())


def is_expired(poll: Poll, now: datetime) -> bool:
    if poll.expires_at is None:
        return False
    return as_utc(poll.expires_at) <= now


@router.get("", response_model=PollListResponse)
async def list_polls(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PollListResponse:
    """List polls with per-option vote counts."""
    await get_trip_access(session, trip_id, ctx)

    polls = (
        await session.execute(
            select(Poll)
            .where(Poll.trip_id == trip_id)
            .options(selectinload(Poll.options))
            .order_by(Poll.created_at.asc())
        )
    ).scalars().all()

    counts: Counter[uuid.UUID] = Counter()
    if polls:
        rows = await session.execute(
            select(PollVote.option_id).where(PollVote.poll_id.in_([poll.poll_id for poll in polls]))
        )
        counts.update(rows.scalars().all())

    return PollListResponse(polls=[to_poll_view(poll, counts) for poll in polls])


@router.post("", response_model=PollView, status_code=status.HTTP_201_CREATED)
async def create_poll(
    trip_id: uuid.UUID,
    request: CreatePollRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PollView:
    """Create a poll and its options in one transaction."""
    await get_trip_access(session, trip_id, ctx)

    poll = Poll(
        poll_id=uuid.uuid4(),
        trip_id=trip_id,
        created_by=ctx.user_id,
        question=request.question,
        allow_multiple_votes=request.allow_multiple_votes,
        status="open",
        expires_at=request.expires_at,
    )
    poll.options = [
        PollOption(option_id=uuid.uuid4(), text=text, order=index)
        for index, text in enumerate(request.options)
    ]
    session.add(poll)
    await session.commit()

    return to_poll_view(poll, Counter())


@router.post("/{poll_id}/vote", response_model=PollView)
async def vote_poll(
    trip_id: uuid.UUID,
    poll_id: uuid.UUID,
    request: VotePollRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PollView:
    """Replace the current user's vote with the given options."""
    await get_trip_access(session, trip_id, ctx)

    poll = await get_poll_or_404(session, trip_id, poll_id)

    if poll.status != "open":
        raise ValidationError("Poll is closed")
    if is_expired(poll, datetime.now(timezone.utc)):
        raise ValidationError("Poll has expired")

    chosen = list(dict.fromkeys(request.option_ids))
    if len(chosen) > 1 and not poll.allow_multiple_votes:
        raise ValidationError("This poll only allows a single choice")
    known = {option.option_id for option in poll.options}
    unknown = [option_id for option_id in chosen if option_id not in known]
    if unknown:
        raise ValidationError(
            "Invalid option for this poll",
            details=[{"option_id": str(option_id)} for option_id in unknown],
        )

    await session.execute(
        delete(PollVote).where(PollVote.poll_id == poll_id, PollVote.user_id == ctx.user_id)
    )
    for option_id in chosen:
        session.add(
            PollVote(vote_id=uuid.uuid4(), poll_id=poll_id, option_id=option_id, user_id=ctx.user_id)
        )
    await session.commit()

    return to_poll_view(poll, await count_votes(session, poll_id))


@router.post("/{poll_id}/close", response_model=PollView)
async def close_poll(
    trip_id: uuid.UUID,
    poll_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PollView:
    """Close a poll. Allowed for its creator and for the trip's managers."""
    access = await get_trip_access(session, trip_id, ctx)

    poll = await get_poll_or_404(session, trip_id, poll_id)
    if poll.created_by != ctx.user_id and access.role not in MANAGE_ROLES:
        raise ForbiddenError("Only the poll creator or a trip admin can close this poll")

    poll.status = "closed"
    await session.commit()

    return to_poll_view(poll, await count_votes(session, poll_id))


@router.get("/{poll_id}", response_model=PollView)
async def get_poll(
    trip_id: uuid.UUID,
    poll_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PollView:
    await get_trip_access(session, trip_id, ctx)
    poll = await get_poll_or_404(session, trip_id, poll_id)
    return to_poll_view(poll, await count_votes(session, poll_id))


@router.delete("/{poll_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_poll(
    trip_id: uuid.UUID,
    poll_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Delete a poll with its options and votes."""
    access = await get_trip_access(session, trip_id, ctx)
    poll = await get_poll_or_404(session, trip_id, poll_id)
    if poll.created_by != ctx.user_id and access.role not in MANAGE_ROLES:
        raise ForbiddenError("Only the poll creator or a trip admin can delete this poll")

    await session.execute(delete(PollVote).where(PollVote.poll_id == poll_id))
    await session.execute(delete(PollOption).where(PollOption.poll_id == poll_id))
    await session.execute(delete(Poll).where(Poll.poll_id == poll_id))
    await session.commit()
