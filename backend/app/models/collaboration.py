"""Collaborator, message, idea, and poll views."""

from datetime import datetime

from pydantic import BaseModel

from backend.app.models.common import CollaboratorRole, InvitationStatus


class CollaboratorView(BaseModel):
    id: str
    trip_id: str
    user_id: str
    email: str
    role: CollaboratorRole
    status: InvitationStatus
    invited_by: str
    invited_at: datetime
    joined_at: datetime | None


class MessageView(BaseModel):
    id: str
    trip_id: str
    user_id: str
    content: str
    reply_to: str | None
    is_edited: bool
    created_at: datetime


class IdeaView(BaseModel):
    """Idea with vote tallies."""

    id: str
    trip_id: str
    created_by: str
    title: str
    description: str | None
    status: str
    upvote_count: int
    downvote_count: int
    vote_count: int
    created_at: datetime


class IdeaCommentView(BaseModel):
    id: str
    idea_id: str
    user_id: str
    content: str
    created_at: datetime


class PollOptionView(BaseModel):
    id: str
    text: str
    order: int
    vote_count: int


class PollView(BaseModel):
    """Poll with per-option counts."""

    id: str
    trip_id: str
    created_by: str
    question: str
    allow_multiple_votes: bool
    status: str
    expires_at: datetime | None
    options: list[PollOptionView]
    total_votes: int
    created_at: datetime
