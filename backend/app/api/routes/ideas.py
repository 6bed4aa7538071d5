"""Idea board endpoints - suggestions with up/down votes and comment threads."""

import uuid
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Idea, IdeaComment, IdeaVote
from backend.app.db.queries import get_trip_access
from backend.app.errors import ForbiddenError, NotFoundError, ValidationError
from backend.app.models.collaboration import IdeaCommentView, IdeaView
from backend.app.models.common import MANAGE_ROLES

router = APIRouter(prefix="/trips/{trip_id}/ideas", tags=["ideas"])


class CreateIdeaRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)


class UpdateIdeaRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    status: Literal["open", "accepted", "rejected"] | None = None


class CreateCommentRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class VoteIdeaRequest(BaseModel):
    # 0 withdraws the user's vote
    vote: Literal[-1, 0, 1]


class IdeaListResponse(BaseModel):
    ideas: list[IdeaView]


class CommentListResponse(BaseModel):
    comments: list[IdeaCommentView]


def to_idea_view(idea: Idea, votes: list[int]) -> IdeaView:
    upvotes = sum(1 for vote in votes if vote > 0)
    downvotes = sum(1 for vote in votes if vote < 0)
    return IdeaView(
        id=str(idea.idea_id),
        trip_id=str(idea.trip_id),
        created_by=str(idea.created_by),
        title=idea.title,
        description=idea.description,
        status=idea.status,
        upvote_count=upvotes,
        downvote_count=downvotes,
        vote_count=upvotes - downvotes,
        created_at=idea.created_at,
    )


def to_comment_view(comment: IdeaComment) -> IdeaCommentView:
    return IdeaCommentView(
        id=str(comment.comment_id),
        idea_id=str(comment.idea_id),
        user_id=str(comment.user_id),
        content=comment.content,
        created_at=comment.created_at,
    )


async def get_idea_or_404(session: AsyncSession, trip_id: uuid.UUID, idea_id: uuid.UUID) -> Idea:
    result = await session.execute(
        select(Idea).where(Idea.idea_id == idea_id, Idea.trip_id == trip_id)
    )
    idea = result.scalar_one_or_none()
    if idea is None:
        raise NotFoundError("Idea not found")
    return idea


async def load_votes(session: AsyncSession, idea_id: uuid.UUID) -> list[int]:
    rows = await session.execute(select(IdeaVote.vote).where(IdeaVote.idea_id == idea_id))
    return list(rows.scalars().all())


@router.get("", response_model=IdeaListResponse)
async def list_ideas(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> IdeaListResponse:
    """List ideas with their vote tallies, oldest first."""
    await get_trip_access(session, trip_id, ctx)

    ideas = (
        await session.execute(
            select(Idea).where(Idea.trip_id == trip_id).order_by(Idea.created_at.asc())
        )
    ).scalars().all()

    votes: dict[uuid.UUID, list[int]] = {idea.idea_id: [] for idea in ideas}
    if ideas:
        rows = await session.execute(
            select(IdeaVote.idea_id, IdeaVote.vote).where(IdeaVote.idea_id.in_(list(votes)))
        )
        for idea_id, vote in rows.all():
            votes[idea_id].append(vote)

    return IdeaListResponse(ideas=[to_idea_view(idea, votes[idea.idea_id]) for idea in ideas])


@router.post("", response_model=IdeaView, status_code=status.HTTP_201_CREATED)
async def create_idea(
    trip_id: uuid.UUID,
    request: CreateIdeaRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> IdeaView:
    await get_trip_access(session, trip_id, ctx)
    idea = Idea(
        idea_id=uuid.uuid4(),
        trip_id=trip_id,
        created_by=ctx.user_id,
        title=request.title,
        description=request.description,
        status="open",
    )
    session.add(idea)
    await session.commit()
    return to_idea_view(idea, [])


@router.post("/{idea_id}/vote", response_model=IdeaView)
async def vote_idea(
    trip_id: uuid.UUID,
    idea_id: uuid.UUID,
    request: VoteIdeaRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> IdeaView:
    """Cast, change, or withdraw (vote 0) the current user's vote."""
    await get_trip_access(session, trip_id, ctx)
    idea = await get_idea_or_404(session, trip_id, idea_id)

    await session.execute(
        delete(IdeaVote).where(IdeaVote.idea_id == idea_id, IdeaVote.user_id == ctx.user_id)
    )
    if request.vote != 0:
        session.add(
            IdeaVote(vote_id=uuid.uuid4(), idea_id=idea_id, user_id=ctx.user_id, vote=request.vote)
        )
    await session.commit()

    return to_idea_view(idea, await load_votes(session, idea_id))


@router.get("/{idea_id}", response_model=IdeaView)
async def get_idea(
    trip_id: uuid.UUID,
    idea_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> IdeaView:
    await get_trip_access(session, trip_id, ctx)
    idea = await get_idea_or_404(session, trip_id, idea_id)
    return to_idea_view(idea, await load_votes(session, idea_id))


@router.patch("/{idea_id}", response_model=IdeaView)
async def update_idea(
    trip_id: uuid.UUID,
    idea_id: uuid.UUID,
    request: UpdateIdeaRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> IdeaView:
    """Edit an idea.

    The author and the trip's managers may change title and description.
    Only managers may accept or reject an idea.
    """
    access = await get_trip_access(session, trip_id, ctx)
    idea = await get_idea_or_404(session, trip_id, idea_id)

    changes = request.model_dump(exclude_unset=True)
    for field in ("title", "status"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be null")

    is_manager = access.role in MANAGE_ROLES
    if "status" in changes and not is_manager:
        raise ForbiddenError("Only the trip owner or an admin can change idea status")
    if ("title" in changes or "description" in changes) and not (
        is_manager or idea.created_by == ctx.user_id
    ):
        raise ForbiddenError("Only the idea author, owner, or admin can edit idea content")

    for field, value in changes.items():
        setattr(idea, field, value)
    await session.commit()

    return to_idea_view(idea, await load_votes(session, idea_id))


@router.delete("/{idea_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_idea(
    trip_id: uuid.UUID,
    idea_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Delete an idea with its votes and comments."""
    access = await get_trip_access(session, trip_id, ctx)
    idea = await get_idea_or_404(session, trip_id, idea_id)
    if idea.created_by != ctx.user_id and access.role not in MANAGE_ROLES:
        raise ForbiddenError("You do not have permission to delete this idea")

    await session.execute(delete(IdeaComment).where(IdeaComment.idea_id == idea_id))
    await session.execute(delete(IdeaVote).where(IdeaVote.idea_id == idea_id))
    await session.execute(delete(Idea).where(Idea.idea_id == idea_id))
    await session.commit()


@router.get("/{idea_id}/comments", response_model=CommentListResponse)
async def list_comments(
    trip_id: uuid.UUID,
    idea_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CommentListResponse:
    """Comments on an idea, oldest first."""
    await get_trip_access(session, trip_id, ctx)
    await get_idea_or_404(session, trip_id, idea_id)

    result = await session.execute(
        select(IdeaComment)
        .where(IdeaComment.idea_id == idea_id)
        .order_by(IdeaComment.created_at.asc())
    )
    return CommentListResponse(comments=[to_comment_view(c) for c in result.scalars().all()])


@router.post(
    "/{idea_id}/comments", response_model=IdeaCommentView, status_code=status.HTTP_201_CREATED
)
async def create_comment(
    trip_id: uuid.UUID,
    idea_id: uuid.UUID,
    request: CreateCommentRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> IdeaCommentView:
    await get_trip_access(session, trip_id, ctx)
    await get_idea_or_404(session, trip_id, idea_id)

    comment = IdeaComment(
        comment_id=uuid.uuid4(), idea_id=idea_id, user_id=ctx.user_id, content=request.content
    )
    session.add(comment)
    await session.commit()
    return to_comment_view(comment)


@router.delete("/{idea_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    trip_id: uuid.UUID,
    idea_id: uuid.UUID,
    comment_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Delete a comment. Allowed for its author and for the trip's managers."""
    access = await get_trip_access(session, trip_id, ctx)
    await get_idea_or_404(session, trip_id, idea_id)

    result = await session.execute(
        select(IdeaComment.user_id).where(
            IdeaComment.comment_id == comment_id, IdeaComment.idea_id == idea_id
        )
    )
    author = result.scalar_one_or_none()
    if author is None:
        raise NotFoundError("Comment not found")
    if author != ctx.user_id and access.role not in MANAGE_ROLES:
        raise ForbiddenError("You can only delete your own comments")

    await session.execute(delete(IdeaComment).where(IdeaComment.comment_id == comment_id))
    await session.commit()
