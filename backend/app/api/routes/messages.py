"""Trip chat endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.config import get_settings
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Message
from backend.app.db.queries import get_trip_access
from backend.app.errors import ForbiddenError, NotFoundError, ValidationError
from backend.app.models.collaboration import MessageView
from backend.app.models.common import MANAGE_ROLES

router = APIRouter(prefix="/trips/{trip_id}/messages", tags=["messages"])


class CreateMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    reply_to: uuid.UUID | None = None


class UpdateMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageListResponse(BaseModel):
    messages: list[MessageView]
    total: int
    page: int
    limit: int


def to_message_view(message: Message) -> MessageView:
    return MessageView(
        id=str(message.message_id),
        trip_id=str(message.trip_id),
        user_id=str(message.user_id),
        content=message.content,
        reply_to=str(message.reply_to) if message.reply_to else None,
        is_edited=message.is_edited,
        created_at=message.created_at,
    )


@router.get("", response_model=MessageListResponse)
async def list_messages(
    trip_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> MessageListResponse:
    """Page through the chat. Page 1 holds the newest messages, oldest first."""
    await get_trip_access(session, trip_id, ctx)
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)

    total = (
        await session.execute(
            select(func.count()).select_from(Message).where(Message.trip_id == trip_id)
        )
    ).scalar_one()

    result = await session.execute(
        select(Message)
        .where(Message.trip_id == trip_id)
        .order_by(Message.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    messages = list(reversed(result.scalars().all()))

    return MessageListResponse(
        messages=[to_message_view(message) for message in messages],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("", response_model=MessageView, status_code=status.HTTP_201_CREATED)
async def create_message(
    trip_id: uuid.UUID,
    request: CreateMessageRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> MessageView:
    """Post a message, optionally replying to another message of the same trip."""
    await get_trip_access(session, trip_id, ctx)

    if request.reply_to is not None:
        result = await session.execute(
            select(Message.message_id).where(
                Message.message_id == request.reply_to, Message.trip_id == trip_id
            )
        )
        if result.scalar_one_or_none() is None:
            raise ValidationError("Replied-to message does not belong to this trip")

    message = Message(
        message_id=uuid.uuid4(),
        trip_id=trip_id,
        user_id=ctx.user_id,
        content=request.content,
        reply_to=request.reply_to,
        is_edited=False,
    )
    session.add(message)
    await session.commit()
    return to_message_view(message)


async def get_message_or_404(
    session: AsyncSession, trip_id: uuid.UUID, message_id: uuid.UUID
) -> Message:
    result = await session.execute(
        select(Message).where(Message.message_id == message_id, Message.trip_id == trip_id)
    )
    message = result.scalar_one_or_none()
    if message is None:
        raise NotFoundError("Message not found")
    return message


@router.patch("/{message_id}", response_model=MessageView)
async def update_message(
    trip_id: uuid.UUID,
    message_id: uuid.UUID,
    request: UpdateMessageRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> MessageView:
    """Edit a message. Only its author may do so; the message is marked edited."""
    await get_trip_access(session, trip_id, ctx)
    message = await get_message_or_404(session, trip_id, message_id)
    if message.user_id != ctx.user_id:
        raise ForbiddenError("You can only edit your own messages")

    message.content = request.content
    message.is_edited = True
    await session.commit()
    return to_message_view(message)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    trip_id: uuid.UUID,
    message_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Delete a message. Allowed for its author and for the trip's managers.

    Replies to the deleted message are kept and lose their reply link.
    """
    access = await get_trip_access(session, trip_id, ctx)
    message = await get_message_or_404(session, trip_id, message_id)
    if message.user_id != ctx.user_id and access.role not in MANAGE_ROLES:
        raise ForbiddenError("You do not have permission to delete this message")

    await session.execute(
        update(Message).where(Message.reply_to == message_id).values(reply_to=None)
    )
    await session.execute(delete(Message).where(Message.message_id == message_id))
    await session.commit()
