"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates:
- user
- trip, event, budget, tag
- expense, expense_split
- collaborator, message
- idea, idea_vote, idea_comment, poll, poll_option, poll_vote
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _uuid_pk(name: str) -> sa.Column:
    return sa.Column(name, sa.Uuid(), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "user",
        _uuid_pk("user_id"),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False, server_default=""),
        _created_at(),
        sa.UniqueConstraint("email", name="uq_user_email"),
    )

    op.create_table(
        "trip",
        _uuid_pk("trip_id"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("destinations", sa.JSON(), nullable=False),
        sa.Column("visibility", sa.Text(), nullable=False, server_default="private"),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["created_by"], ["user.user_id"]),
    )
    op.create_index("idx_trip_creator", "trip", ["created_by", "created_at"])

    op.create_table(
        "collaborator",
        _uuid_pk("collaborator_id"),
        sa.Column("trip_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("invited_by", sa.Uuid(), nullable=False),
        sa.Column(
            "invited_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user.user_id"]),
        sa.ForeignKeyConstraint(["invited_by"], ["user.user_id"]),
        sa.UniqueConstraint("trip_id", "user_id", name="uq_collaborator_trip_user"),
    )

    op.create_table(
        "event",
        _uuid_pk("event_id"),
        sa.Column("trip_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.JSON(), nullable=True),
        sa.Column("cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("confirmation_number", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["user.user_id"]),
    )
    op.create_index("idx_event_trip_start", "event", ["trip_id", "start_datetime", "order"])

    op.create_table(
        "budget",
        _uuid_pk("budget_id"),
        sa.Column("trip_id", sa.Uuid(), nullable=False),
        sa.Column("total_budget", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.Text(), nullable=False, server_default="USD"),
        sa.Column("category_budgets", sa.JSON(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("trip_id", name="uq_budget_trip"),
    )

    op.create_table(
        "expense",
        _uuid_pk("expense_id"),
        sa.Column("trip_id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=True),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_by", sa.Uuid(), nullable=False),
        sa.Column("receipt_url", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["event_id"], ["event.event_id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["paid_by"], ["user.user_id"]),
    )
    op.create_index("idx_expense_trip_date", "expense", ["trip_id", "date"])

    op.create_table(
        "expense_split",
        _uuid_pk("split_id"),
        sa.Column("expense_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.ForeignKeyConstraint(["expense_id"], ["expense.expense_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user.user_id"]),
        sa.UniqueConstraint("expense_id", "user_id", name="uq_split_expense_user"),
    )

    op.create_table(
        "tag",
        _uuid_pk("tag_id"),
        sa.Column("trip_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("color", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
    )

    op.create_table(
        "message",
        _uuid_pk("message_id"),
        sa.Column("trip_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("reply_to", sa.Uuid(), nullable=True),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user.user_id"]),
        sa.ForeignKeyConstraint(["reply_to"], ["message.message_id"]),
    )
    op.create_index("idx_message_trip_created", "message", ["trip_id", "created_at"])

    op.create_table(
        "idea",
        _uuid_pk("idea_id"),
        sa.Column("trip_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="open"),
        _created_at(),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["user.user_id"]),
    )

    op.create_table(
        "idea_vote",
        _uuid_pk("vote_id"),
        sa.Column("idea_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("vote", sa.SmallInteger(), nullable=False),
        sa.ForeignKeyConstraint(["idea_id"], ["idea.idea_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user.user_id"]),
        sa.UniqueConstraint("idea_id", "user_id", name="uq_idea_vote_user"),
        sa.CheckConstraint("vote IN (-1, 1)", name="ck_idea_vote_value"),
    )

    op.create_table(
        "idea_comment",
        _uuid_pk("comment_id"),
        sa.Column("idea_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["idea_id"], ["idea.idea_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user.user_id"]),
    )
    op.create_index("idx_idea_comment_idea_created", "idea_comment", ["idea_id", "created_at"])

    op.create_table(
        "poll",
        _uuid_pk("poll_id"),
        sa.Column("trip_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("allow_multiple_votes", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.Text(), nullable=False, server_default="open"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["user.user_id"]),
    )

    op.create_table(
        "poll_option",
        _uuid_pk("option_id"),
        sa.Column("poll_id", sa.Uuid(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["poll_id"], ["poll.poll_id"], ondelete="CASCADE"),
    )

    op.create_table(
        "poll_vote",
        _uuid_pk("vote_id"),
        sa.Column("poll_id", sa.Uuid(), nullable=False),
        sa.Column("option_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["poll_id"], ["poll.poll_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["option_id"], ["poll_option.option_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user.user_id"]),
        sa.UniqueConstraint("poll_id", "option_id", "user_id", name="uq_poll_vote_option_user"),
    )


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        "poll_vote",
        "poll_option",
        "poll",
        "idea_comment",
        "idea_vote",
        "idea",
        "message",
        "tag",
        "expense_split",
        "expense",
        "budget",
        "event",
        "collaborator",
        "trip",
        "user",
    ):
        op.drop_table(table)
