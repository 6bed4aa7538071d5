"""Settlement calculation - who owes whom after a set of shared expenses."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from backend.app.models.common import quantize_money

SETTLED_THRESHOLD = Decimal("0.01")


@dataclass(frozen=True)
class PaidExpense:
    """Expense reduced to what settlement needs."""

    paid_by: UUID
    amount: Decimal
    splits: Sequence[tuple[UUID, Decimal]]


@dataclass(frozen=True)
class Settlement:
    """A single transfer that settles part of a debt."""

    from_user_id: UUID
    to_user_id: UUID
    amount: Decimal


def compute_balances(expenses: Iterable[PaidExpense]) -> dict[UUID, Decimal]:
    """Net balance per user: positive is owed money, negative owes money.

    An expense without splits is owed in full by its payer, so it nets to zero.
    """
    balances: dict[UUID, Decimal] = {}
    for expense in expenses:
        splits = expense.splits or [(expense.paid_by, expense.amount)]
        balances[expense.paid_by] = balances.get(expense.paid_by, Decimal("0")) + expense.amount
        for user_id, owed in splits:
            balances[user_id] = balances.get(user_id, Decimal("0")) - owed
    return {user_id: quantize_money(balance) for user_id, balance in balances.items()}


def calculate_settlements(expenses: Iterable[PaidExpense]) -> list[Settlement]:
    """Greedy settlement that keeps the number of transfers small.

    Largest creditor is matched with largest debtor until one side is
    settled; balances within 0.01 count as settled.
    """
    balances = compute_balances(expenses)

    creditors = sorted(
        ([user_id, balance] for user_id, balance in balances.items() if balance > SETTLED_THRESHOLD),
        key=lambda item: (-item[1], str(item[0])),
    )
    debtors = sorted(
        ([user_id, -balance] for user_id, balance in balances.items() if balance < -SETTLED_THRESHOLD),
        key=lambda item: (-item[1], str(item[0])),
    )

    settlements: list[Settlement] = []
    ci = di = 0
    while ci < len(creditors) and di < len(debtors):
        creditor, debtor = creditors[ci], debtors[di]
        amount = min(creditor[1], debtor[1])

        if amount > SETTLED_THRESHOLD:
            settlements.append(
                Settlement(from_user_id=debtor[0], to_user_id=creditor[0], amount=amount)
            )

        creditor[1] -= amount
        debtor[1] -= amount

        if creditor[1] < SETTLED_THRESHOLD:
            ci += 1
        if debtor[1] < SETTLED_THRESHOLD:
            di += 1

    return settlements
