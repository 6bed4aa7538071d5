"""Unit tests for the expense split calculator."""

import uuid
from decimal import Decimal

import pytest

from backend.app.errors import ValidationError
from backend.app.expenses.splits import split_by_amount, split_by_percentage, split_equally

ALICE = uuid.UUID("00000000-0000-0000-0000-00000000000a")
BOB = uuid.UUID("00000000-0000-0000-0000-00000000000b")
CAROL = uuid.UUID("00000000-0000-0000-0000-00000000000c")


def amounts(shares: list) -> list[Decimal]:
    return [share.amount for share in shares]


class TestSplitEqually:
    """Equal splits."""

    def test_last_participant_absorbs_remainder(self) -> None:
        """100 / 3 leaves one cent for the last participant."""
        shares = split_equally(Decimal("100"), [ALICE, BOB, CAROL])

        assert amounts(shares) == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert [share.user_id for share in shares] == [ALICE, BOB, CAROL]

    def test_small_amount_never_yields_negative_share(self) -> None:
        """Five cents over ten people: only the last participant owes anything."""
        users = [uuid.uuid4() for _ in range(10)]

        shares = split_equally(Decimal("0.05"), users)

        assert amounts(shares) == [Decimal("0.00")] * 9 + [Decimal("0.05")]

    def test_base_share_rounds_down(self) -> None:
        """1.00 / 8 is 0.125; everyone but the last owes 0.12."""
        users = [uuid.uuid4() for _ in range(8)]

        shares = split_equally(Decimal("1.00"), users)

        assert amounts(shares) == [Decimal("0.12")] * 7 + [Decimal("0.16")]

    def test_three_way_split_of_five_cents(self) -> None:
        shares = split_equally(Decimal("0.05"), [ALICE, BOB, CAROL])

        assert amounts(shares) == [Decimal("0.01"), Decimal("0.01"), Decimal("0.03")]

    @pytest.mark.parametrize("total", ["0.01", "0.05", "0.99", "1.00", "7.77", "1000.01"])
    @pytest.mark.parametrize("count", [2, 3, 7, 8, 10, 30])
    def test_shares_are_never_negative(self, total: str, count: int) -> None:
        users = [uuid.uuid4() for _ in range(count)]

        shares = split_equally(Decimal(total), users)

        assert all(share.amount >= 0 for share in shares)
        assert sum(amounts(shares)) == Decimal(total)

    @pytest.mark.parametrize(
        "total,count",
        [("100", 3), ("10", 7), ("0.01", 2), ("999.99", 4), ("50", 1), ("0", 3)],
    )
    def test_shares_sum_exactly(self, total: str, count: int) -> None:
        """Shares always add up to the amount."""
        users = [uuid.uuid4() for _ in range(count)]

        shares = split_equally(Decimal(total), users)

        assert sum(amounts(shares)) == Decimal(total)

    def test_single_participant_owes_everything(self) -> None:
        shares = split_equally(Decimal("42.50"), [ALICE])

        assert amounts(shares) == [Decimal("42.50")]

    def test_rejects_no_participants(self) -> None:
        with pytest.raises(ValidationError, match="zero participants"):
            split_equally(Decimal("10"), [])

    def test_rejects_duplicate_participants(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate"):
            split_equally(Decimal("10"), [ALICE, ALICE])

    def test_rejects_negative_amount(self) -> None:
        with pytest.raises(ValidationError, match="non-negative"):
            split_equally(Decimal("-1"), [ALICE])


class TestSplitByAmount:
    """Custom amount splits."""

    def test_returns_declared_amounts(self) -> None:
        shares = split_by_amount(Decimal("100"), [(ALICE, Decimal("60")), (BOB, Decimal("40"))])

        assert amounts(shares) == [Decimal("60.00"), Decimal("40.00")]

    def test_accepts_one_cent_drift(self) -> None:
        """Declared amounts within 0.01 of the total are kept as declared."""
        shares = split_by_amount(
            Decimal("100"),
            [(ALICE, Decimal("33.33")), (BOB, Decimal("33.33")), (CAROL, Decimal("33.33"))],
        )

        assert sum(amounts(shares)) == Decimal("99.99")

    def test_rejects_sum_below_total(self) -> None:
        with pytest.raises(ValidationError, match="are less than"):
            split_by_amount(Decimal("100"), [(ALICE, Decimal("50")), (BOB, Decimal("40"))])

    def test_rejects_sum_above_total(self) -> None:
        with pytest.raises(ValidationError, match="exceed"):
            split_by_amount(Decimal("100"), [(ALICE, Decimal("60")), (BOB, Decimal("60"))])

    def test_rejects_negative_share(self) -> None:
        with pytest.raises(ValidationError, match="non-negative"):
            split_by_amount(Decimal("10"), [(ALICE, Decimal("20")), (BOB, Decimal("-10"))])

    def test_rejects_duplicate_users(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate"):
            split_by_amount(Decimal("10"), [(ALICE, Decimal("5")), (ALICE, Decimal("5"))])


class TestSplitByPercentage:
    """Custom percentage splits."""

    def test_converts_percentages(self) -> None:
        shares = split_by_percentage(
            Decimal("200"), [(ALICE, Decimal("25")), (BOB, Decimal("75"))]
        )

        assert amounts(shares) == [Decimal("50.00"), Decimal("150.00")]

    def test_last_participant_absorbs_rounding(self) -> None:
        """Thirds of 100 round to 33.33 and the last share closes the gap."""
        third = Decimal("33.333")
        shares = split_by_percentage(
            Decimal("100"), [(ALICE, third), (BOB, third), (CAROL, Decimal("33.334"))]
        )

        assert amounts(shares) == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(amounts(shares)) == Decimal("100.00")

    def test_rejects_percentages_not_summing_to_100(self) -> None:
        with pytest.raises(ValidationError, match="sum to 100%"):
            split_by_percentage(Decimal("100"), [(ALICE, Decimal("50")), (BOB, Decimal("40"))])

    def test_rejects_percentage_out_of_range(self) -> None:
        with pytest.raises(ValidationError, match="between 0 and 100"):
            split_by_percentage(Decimal("100"), [(ALICE, Decimal("150")), (BOB, Decimal("-50"))])

    def test_tolerates_tiny_drift(self) -> None:
        """Percentages within 0.01 of 100 are accepted."""
        shares = split_by_percentage(
            Decimal("90"), [(ALICE, Decimal("33.33")), (BOB, Decimal("33.33")), (CAROL, Decimal("33.33"))]
        )

        assert sum(amounts(shares)) == Decimal("90.00")

    def test_overshoot_is_taken_back_without_going_negative(self) -> None:
        """Percentages summing to 100.01 cannot push a zero share below zero."""
        shares = split_by_percentage(
            Decimal("100"), [(ALICE, Decimal("50.01")), (BOB, Decimal("50")), (CAROL, Decimal("0"))]
        )

        assert amounts(shares) == [Decimal("50.01"), Decimal("49.99"), Decimal("0.00")]
        assert sum(amounts(shares)) == Decimal("100.00")

    @pytest.mark.parametrize(
        "total,percentages",
        [
            ("100", ["50.01", "50", "0"]),
            ("0.01", ["99.99", "0.01"]),
            ("0.03", ["33.34", "33.33", "33.34"]),
            ("10", ["0.01", "99.99", "0.01"]),
            ("100", ["100", "0.01", "0"]),
        ],
    )
    def test_shares_are_never_negative(self, total: str, percentages: list[str]) -> None:
        users = [uuid.uuid4() for _ in percentages]

        shares = split_by_percentage(
            Decimal(total), [(user, Decimal(p)) for user, p in zip(users, percentages)]
        )

        assert all(share.amount >= 0 for share in shares)
        assert sum(amounts(shares)) == Decimal(total)
