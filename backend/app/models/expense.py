"""Expense split variants and expense views.

A split arrives as a tagged variant keyed on ``mode`` and is validated at the
request boundary before any business logic runs.
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from backend.app.models.common import ExpenseCategory, MoneyAmount


class EqualSplit(BaseModel):
    """Split the amount equally among the listed users."""

    mode: Literal["equal"]
    user_ids: list[UUID] = Field(..., min_length=1)


class AmountShare(BaseModel):
    user_id: UUID
    amount: MoneyAmount = Field(..., ge=0)


class AmountSplit(BaseModel):
    """Each user owes a declared amount."""

    mode: Literal["custom_amount"]
    shares: list[AmountShare] = Field(..., min_length=1)


class PercentageShare(BaseModel):
    user_id: UUID
    percentage: MoneyAmount = Field(..., ge=0, le=100)


class PercentageSplit(BaseModel):
    """Each user owes a declared percentage of the amount."""

    mode: Literal["custom_percentage"]
    shares: list[PercentageShare] = Field(..., min_length=1)


SplitInput = Annotated[EqualSplit | AmountSplit | PercentageSplit, Field(discriminator="mode")]


class SplitView(BaseModel):
    """One participant's stored share."""

    user_id: str
    amount: MoneyAmount


class ExpenseView(BaseModel):
    """Expense with its splits."""

    id: str
    trip_id: str
    event_id: str | None
    category: ExpenseCategory
    description: str
    amount: MoneyAmount
    currency: str
    date: datetime
    paid_by: str
    receipt_url: str | None
    splits: list[SplitView]
    created_at: datetime


class SettlementView(BaseModel):
    """One transfer settling a debt."""

    from_user_id: str
    to_user_id: str
    amount: MoneyAmount
