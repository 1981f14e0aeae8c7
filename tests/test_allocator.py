"""Tests for split allocation across all modes."""

from decimal import Decimal

import pytest

from settle_up.allocator import allocate_split, reallocate, remove_participant
from settle_up.exceptions import (
    InvalidAmountError,
    NoParticipantsError,
    SplitError,
    UnbalancedSplitError,
)
from settle_up.models import USER_SELF_ID, ParticipantInput, SplitMode


def people(*ids: str, **fields) -> list[ParticipantInput]:
    """Create participant inputs, optionally with one raw value each."""
    result = []
    for i, participant_id in enumerate(ids):
        values = {k: v[i] for k, v in fields.items()}
        result.append(ParticipantInput(participant_id=participant_id, **values))
    return result


def owed(result) -> list[Decimal]:
    return [s.owed_amount for s in result.shares]


class TestEqualSplit:
    """Tests for equal allocation."""

    def test_remainder_goes_to_first_participant(self):
        """100.00 between three people: the leftover cent goes to the first."""
        result = allocate_split(
            Decimal("100.00"), "INR", people("a", "b", "c"), SplitMode.EQUAL
        )

        assert result.ok
        assert owed(result) == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
        assert result.assigned == Decimal("100.00")

    def test_even_division(self):
        result = allocate_split(
            Decimal("10"), "INR", people("a", "b", "c", "d"), SplitMode.EQUAL
        )

        assert owed(result) == [Decimal("2.50")] * 4

    def test_several_leftover_cents(self):
        """0.05 between three people leaves two cents for the first."""
        result = allocate_split(
            Decimal("0.05"), "INR", people("a", "b", "c"), SplitMode.EQUAL
        )

        assert owed(result) == [Decimal("0.03"), Decimal("0.01"), Decimal("0.01")]

    def test_single_participant_owes_everything(self):
        result = allocate_split(Decimal("42.42"), "INR", people("a"), SplitMode.EQUAL)

        assert owed(result) == [Decimal("42.42")]

    def test_self_share_is_pre_settled(self):
        result = allocate_split(
            Decimal("20"), "INR", people(USER_SELF_ID, "a"), SplitMode.EQUAL
        )

        assert [s.is_settled for s in result.shares] == [True, False]

    @pytest.mark.parametrize(
        "total,count",
        [("100.00", 3), ("0.01", 2), ("999.99", 7), ("1234.56", 11), ("7", 6)],
    )
    def test_sum_matches_total(self, total, count):
        ids = [f"p{i}" for i in range(count)]
        result = allocate_split(Decimal(total), "INR", people(*ids), SplitMode.EQUAL)

        assert result.assigned == Decimal(total)
        assert all(s.owed_amount >= 0 for s in result.shares)


class TestPercentageSplit:
    """Tests for percentage allocation."""

    def test_basic_percentages(self):
        result = allocate_split(
            Decimal("200"),
            "INR",
            people("a", "b", "c", percentage=["50", "30", "20"]),
            SplitMode.PERCENTAGE,
        )

        assert owed(result) == [Decimal("100.00"), Decimal("60.00"), Decimal("40.00")]

    def test_all_zero_falls_back_to_equal(self):
        """Leaving every percentage at zero splits equally."""
        result = allocate_split(
            Decimal("90.00"),
            "INR",
            people("a", "b", "c", percentage=["0", "0", "0"]),
            SplitMode.PERCENTAGE,
        )

        assert result.ok
        assert owed(result) == [Decimal("30.00")] * 3

    def test_percentages_are_normalized(self):
        """Percentages that don't add to 100 are scaled by their sum."""
        result = allocate_split(
            Decimal("10"),
            "INR",
            people("a", "b", percentage=["1", "1"]),
            SplitMode.PERCENTAGE,
        )

        assert owed(result) == [Decimal("5.00"), Decimal("5.00")]

    def test_unset_percentage_is_an_equal_share(self):
        result = allocate_split(
            Decimal("100"), "INR", people("a", "b", "c"), SplitMode.PERCENTAGE
        )

        assert owed(result) == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]

    def test_unparseable_percentage_counts_as_zero(self):
        result = allocate_split(
            Decimal("100"),
            "INR",
            people("a", "b", "c", percentage=["abc", "50", "50"]),
            SplitMode.PERCENTAGE,
        )

        assert owed(result) == [Decimal("0.00"), Decimal("50.00"), Decimal("50.00")]

    def test_raw_percentage_is_retained(self):
        result = allocate_split(
            Decimal("100"),
            "INR",
            people("a", "b", percentage=["75", "25"]),
            SplitMode.PERCENTAGE,
        )

        assert [s.percentage for s in result.shares] == ["75", "25"]
        assert all(s.share_units is None for s in result.shares)


class TestSharesSplit:
    """Tests for share-unit allocation."""

    def test_weighted_shares(self):
        result = allocate_split(
            Decimal("120.00"),
            "INR",
            people("a", "b", "c", shares=["1", "2", "1"]),
            SplitMode.SHARES,
        )

        assert owed(result) == [Decimal("30.00"), Decimal("60.00"), Decimal("30.00")]
        assert [s.share_units for s in result.shares] == [
            Decimal("1"),
            Decimal("2"),
            Decimal("1"),
        ]

    def test_unset_shares_default_to_one(self):
        result = allocate_split(
            Decimal("30"), "INR", people("a", "b", "c"), SplitMode.SHARES
        )

        assert owed(result) == [Decimal("10.00")] * 3

    def test_all_zero_falls_back_to_equal(self):
        result = allocate_split(
            Decimal("60"),
            "INR",
            people("a", "b", shares=["0", "0"]),
            SplitMode.SHARES,
        )

        assert owed(result) == [Decimal("30.00"), Decimal("30.00")]

    def test_fractional_shares(self):
        result = allocate_split(
            Decimal("30"),
            "INR",
            people("a", "b", shares=["0.5", "1"]),
            SplitMode.SHARES,
        )

        assert owed(result) == [Decimal("10.00"), Decimal("20.00")]

    def test_leftover_goes_to_largest_share(self):
        """10 split 1:2 leaves a cent, which goes to the bigger share."""
        result = allocate_split(
            Decimal("10"),
            "INR",
            people("a", "b", shares=["1", "2"]),
            SplitMode.SHARES,
        )

        assert owed(result) == [Decimal("3.33"), Decimal("6.67")]
        assert result.assigned == Decimal("10")

    def test_negative_shares_are_clamped(self):
        result = allocate_split(
            Decimal("10"),
            "INR",
            people("a", "b", shares=["-3", "1"]),
            SplitMode.SHARES,
        )

        assert owed(result) == [Decimal("0.00"), Decimal("10.00")]

    def test_typed_units_are_retained_after_zero_fallback(self):
        """All-zero units split equally but still record the zeros as typed."""
        result = allocate_split(
            Decimal("60"),
            "INR",
            people("a", "b", shares=["0", "0"]),
            SplitMode.SHARES,
        )

        assert [s.share_units for s in result.shares] == [Decimal("0"), Decimal("0")]

        recomputed = reallocate(result.shares, Decimal("80"), "INR", SplitMode.SHARES)
        assert owed(recomputed) == [Decimal("40.00"), Decimal("40.00")]


class TestManualSplit:
    """Tests for manually entered amounts."""

    def test_balanced_amounts_succeed(self):
        result = allocate_split(
            Decimal("50.00"),
            "INR",
            people("a", "b", amount=["20", "30"]),
            SplitMode.MANUAL,
        )

        assert result.ok
        assert owed(result) == [Decimal("20"), Decimal("30")]

    def test_short_amounts_report_remainder(self):
        """Entries summing to 49.00 of 50.00 leave 1.00 remaining."""
        result = allocate_split(
            Decimal("50.00"),
            "INR",
            people("a", "b", amount=["20", "29"]),
            SplitMode.MANUAL,
        )

        assert isinstance(result.error, UnbalancedSplitError)
        assert result.error.remainder == Decimal("1.00")
        # Entered amounts are kept, not corrected
        assert owed(result) == [Decimal("20"), Decimal("29")]

    def test_over_assigned_amounts_report_negative_remainder(self):
        result = allocate_split(
            Decimal("50"),
            "INR",
            people("a", "b", amount=["30", "25"]),
            SplitMode.MANUAL,
        )

        assert isinstance(result.error, UnbalancedSplitError)
        assert result.error.remainder == Decimal("-5.00")

    def test_mismatch_within_tolerance_is_accepted(self):
        result = allocate_split(
            Decimal("50"),
            "INR",
            people("a", "b", amount=["25", "24.99"]),
            SplitMode.MANUAL,
        )

        assert result.ok

    def test_blank_amount_counts_as_zero(self):
        result = allocate_split(
            Decimal("50"),
            "INR",
            people("a", "b", amount=["50", ""]),
            SplitMode.MANUAL,
        )

        assert result.ok
        assert owed(result) == [Decimal("50"), Decimal("0")]

    def test_negative_amount_is_rejected(self):
        result = allocate_split(
            Decimal("50"),
            "INR",
            people("a", "b", amount=["60", "-10"]),
            SplitMode.MANUAL,
        )

        assert isinstance(result.error, InvalidAmountError)

    def test_no_participants_leaves_whole_total(self):
        result = allocate_split(Decimal("50"), "INR", [], SplitMode.MANUAL)

        assert isinstance(result.error, UnbalancedSplitError)
        assert result.error.remainder == Decimal("50.00")


class TestAllocationErrors:
    """Tests for rejected allocations."""

    @pytest.mark.parametrize("total", ["0", "-5.00"])
    def test_non_positive_total(self, total):
        result = allocate_split(Decimal(total), "INR", people("a"), SplitMode.EQUAL)

        assert isinstance(result.error, InvalidAmountError)
        assert result.error.amount == Decimal(total)
        assert result.shares == []

    @pytest.mark.parametrize(
        "mode", [SplitMode.EQUAL, SplitMode.PERCENTAGE, SplitMode.SHARES]
    )
    def test_no_participants(self, mode):
        result = allocate_split(Decimal("10"), "INR", [], mode)

        assert isinstance(result.error, NoParticipantsError)
        assert result.error.mode == mode.value

    def test_raise_for_error(self):
        result = allocate_split(Decimal("10"), "INR", [], SplitMode.EQUAL)

        with pytest.raises(NoParticipantsError, match="zero participants"):
            result.raise_for_error()

    def test_raise_for_error_passes_through_success(self):
        result = allocate_split(Decimal("10"), "INR", people("a"), SplitMode.EQUAL)

        assert result.raise_for_error() is result

    @pytest.mark.parametrize("total", ["0.004", "10.005"])
    def test_total_finer_than_minor_unit(self, total):
        result = allocate_split(
            Decimal(total), "INR", people("a", "b", "c"), SplitMode.EQUAL
        )

        assert isinstance(result.error, InvalidAmountError)
        assert result.error.amount == Decimal(total)
        assert result.shares == []

    def test_total_fits_currency_with_fewer_places(self):
        result = allocate_split(
            Decimal("10.5"), "JPY", people("a", "b"), SplitMode.EQUAL, places=0
        )

        assert isinstance(result.error, InvalidAmountError)

    def test_out_of_range_share_units(self):
        result = allocate_split(
            Decimal("100"),
            "INR",
            people("a", "b", shares=["1e999999999", "1"]),
            SplitMode.SHARES,
        )

        assert isinstance(result.error, SplitError)
        assert result.shares == []

    def test_out_of_range_manual_amount(self):
        result = allocate_split(
            Decimal("100"),
            "INR",
            people("a", "b", amount=["1e999999999", "1"]),
            SplitMode.MANUAL,
        )

        assert isinstance(result.error, SplitError)
        assert result.shares == []


class TestRecomputation:
    """Tests for re-running the allocator after edits."""

    def test_removing_participant_respreads_equal_split(self):
        shares = allocate_split(
            Decimal("90"), "INR", people("a", "b", "c"), SplitMode.EQUAL
        ).shares

        result = remove_participant(shares, "b", Decimal("90"), "INR", SplitMode.EQUAL)

        assert [s.participant_id for s in result.shares] == ["a", "c"]
        assert owed(result) == [Decimal("45.00"), Decimal("45.00")]

    def test_removing_participant_keeps_manual_amounts(self):
        shares = allocate_split(
            Decimal("90"),
            "INR",
            people("a", "b", "c", amount=["30", "30", "30"]),
            SplitMode.MANUAL,
        ).shares

        result = remove_participant(shares, "c", Decimal("90"), "INR", SplitMode.MANUAL)

        assert owed(result) == [Decimal("30"), Decimal("30")]
        assert result.error.remainder == Decimal("30.00")

    def test_switching_mode_uses_defaults(self):
        """Shares from an equal split have no units, so each counts as one."""
        shares = allocate_split(
            Decimal("40"), "INR", people("a", "b"), SplitMode.EQUAL
        ).shares

        result = reallocate(shares, Decimal("40"), "INR", SplitMode.SHARES)

        assert owed(result) == [Decimal("20.00"), Decimal("20.00")]

    def test_changed_total_recomputes_shares(self):
        shares = allocate_split(
            Decimal("120"),
            "INR",
            people("a", "b", "c", shares=["1", "2", "1"]),
            SplitMode.SHARES,
        ).shares

        result = reallocate(shares, Decimal("40"), "INR", SplitMode.SHARES)

        assert owed(result) == [Decimal("10.00"), Decimal("20.00"), Decimal("10.00")]
