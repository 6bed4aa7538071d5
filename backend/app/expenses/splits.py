"""Expense split calculation.

Given an expense amount and a split mode, compute each participant's owed
share. The total is rounded to the minor unit (0.01, half up); computed
shares are rounded DOWN to the minor unit so no share starts above its
exact value.

Remainder policy: the cents left over after rounding down go to the LAST
participant in input order, so the shares always sum to the expense amount
exactly for EQUAL and percentage splits and no share is ever negative.
Percentages may sum to slightly over 100; the resulting overshoot is taken
back from the latest shares that still have money, never below zero.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from uuid import UUID

from backend.app.errors import ValidationError
from backend.app.models.common import CENT, quantize_money

SPLIT_TOLERANCE = Decimal("0.01")
HUNDRED = Decimal("100")


class SplitMode(str, Enum):
    """How an expense is divided between participants."""

    EQUAL = "equal"
    CUSTOM_AMOUNT = "custom_amount"
    CUSTOM_PERCENTAGE = "custom_percentage"


@dataclass(frozen=True)
class SplitShare:
    """One participant's owed amount."""

    user_id: UUID
    amount: Decimal


def split_equally(amount: Decimal, user_ids: Sequence[UUID]) -> list[SplitShare]:
    """Split an amount equally between participants.

    Args:
        amount: Total expense amount
        user_ids: Participants, in the order shares are returned

    Returns:
        Shares summing exactly to the rounded amount

    Raises:
        ValidationError: No participants, duplicates, or negative amount
    """
    _check_participants(user_ids)
    _check_amount(amount)

    total = quantize_money(amount)
    share = _round_down(total / len(user_ids))
    shares = [SplitShare(user_id=user_id, amount=share) for user_id in user_ids]
    return _absorb_remainder(total, shares)


def split_by_amount(
    amount: Decimal, declared: Sequence[tuple[UUID, Decimal]]
) -> list[SplitShare]:
    """Validate caller-declared amounts against the expense total.

    The declared amounts are returned as given (rounded to the minor unit).

    Raises:
        ValidationError: Declared amounts do not sum to the total within 0.01
    """
    _check_participants([user_id for user_id, _ in declared])
    _check_amount(amount)

    shares: list[SplitShare] = []
    for user_id, value in declared:
        if value < 0:
            raise ValidationError("Split amount must be non-negative")
        shares.append(SplitShare(user_id=user_id, amount=quantize_money(value)))

    total = quantize_money(amount)
    declared_total = sum((share.amount for share in shares), Decimal("0"))
    if abs(declared_total - total) > SPLIT_TOLERANCE:
        relation = "exceed" if declared_total > total else "are less than"
        raise ValidationError(
            f"Split amounts ({declared_total}) {relation} the total amount ({total})"
        )

    return shares


def split_by_percentage(
    amount: Decimal, declared: Sequence[tuple[UUID, Decimal]]
) -> list[SplitShare]:
    """Convert declared percentages into owed amounts.

    Raises:
        ValidationError: A percentage is outside [0, 100], or the percentages
            do not sum to 100 within 0.01
    """
    _check_participants([user_id for user_id, _ in declared])
    _check_amount(amount)

    for _, percentage in declared:
        if percentage < 0 or percentage > HUNDRED:
            raise ValidationError("Split percentage must be between 0 and 100")

    percentage_total = sum((percentage for _, percentage in declared), Decimal("0"))
    if abs(percentage_total - HUNDRED) > SPLIT_TOLERANCE:
        raise ValidationError(
            f"Percentages must sum to 100%, currently {percentage_total:.2f}%"
        )

    total = quantize_money(amount)
    shares = [
        SplitShare(user_id=user_id, amount=_round_down(total * percentage / HUNDRED))
        for user_id, percentage in declared
    ]
    return _absorb_remainder(total, shares)


def _round_down(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


def _absorb_remainder(total: Decimal, shares: list[SplitShare]) -> list[SplitShare]:
    remainder = total - sum((share.amount for share in shares), Decimal("0"))
    if remainder > 0:
        last = shares[-1]
        shares[-1] = SplitShare(user_id=last.user_id, amount=last.amount + remainder)
        return shares

    # Overshoot: only possible when percentages sum to just over 100
    excess = -remainder
    for index in reversed(range(len(shares))):
        if not excess:
            break
        share = shares[index]
        taken = min(share.amount, excess)
        shares[index] = SplitShare(user_id=share.user_id, amount=share.amount - taken)
        excess -= taken
    return shares


def _check_participants(user_ids: Sequence[UUID]) -> None:
    if not user_ids:
        raise ValidationError("Cannot split among zero participants")
    if len(set(user_ids)) != len(user_ids):
        raise ValidationError("Duplicate users in splits")


def _check_amount(amount: Decimal) -> None:
    if amount < 0:
        raise ValidationError("Amount must be non-negative")
