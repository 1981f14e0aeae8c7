"""Split allocation: dividing one expense total between participants."""

import logging
from collections.abc import Sequence
from decimal import Decimal, DecimalException

from .exceptions import (
    InvalidAmountError,
    NoParticipantsError,
    SplitError,
    UnbalancedSplitError,
)
from .models import (
    USER_SELF_ID,
    AllocationResult,
    ParticipantInput,
    SplitMode,
    SplitShare,
)
from .money import (
    DEFAULT_PLACES,
    TOLERANCE,
    ZERO,
    floor_to_unit,
    parse_decimal,
    quantize,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def allocate_split(
    total_amount: Decimal,
    currency: str,
    participants: Sequence[ParticipantInput],
    mode: SplitMode,
    *,
    self_id: str = USER_SELF_ID,
    places: int = DEFAULT_PLACES,
    tolerance: Decimal = TOLERANCE,
) -> AllocationResult:
    """
    Compute each participant's owed amount for one expense.

    Equal, percentage and shares modes always assign exactly the total: every
    share is truncated to the minor unit and the leftover units are added to
    one participant (see ``_distribute``). Manual mode keeps the amounts as
    entered and only checks that they add up.

    Args:
        total_amount: Expense total, must be positive
        currency: Currency code of the expense
        participants: Ordered participants with their raw inputs
        mode: Allocation mode
        self_id: Participant id whose share is marked as already settled
        places: Decimal places of the currency
        tolerance: Largest manual mismatch accepted as rounding noise

    Returns:
        AllocationResult with the shares, or with an error describing why the
        split can't be saved
    """
    result = AllocationResult(total_amount=total_amount, currency=currency, mode=mode)

    try:
        if total_amount <= 0:
            result.error = InvalidAmountError(total_amount)
            return result
        if quantize(total_amount, places) != total_amount:
            result.error = InvalidAmountError(
                total_amount,
                f"Amount {total_amount} is finer than the smallest {currency} unit",
            )
            return result

        if mode is SplitMode.MANUAL:
            return _allocate_manual(result, participants, self_id, places, tolerance)

        if not participants:
            result.error = NoParticipantsError(mode.value)
            return result

        if mode is SplitMode.EQUAL:
            weights = [Decimal(1)] * len(participants)
        elif mode is SplitMode.PERCENTAGE:
            weights = _percentage_weights(participants)
        else:
            weights = _share_weights(participants)

        amounts = _distribute(total_amount, weights, places)
    except DecimalException as e:
        logger.debug(f"Split arithmetic failed: {e!r}")
        result.shares = []
        result.error = SplitError(f"Split inputs are out of range: {e!r}")
        return result

    for participant, amount in zip(participants, amounts):
        share = SplitShare(
            participant_id=participant.participant_id,
            display_name=participant.display_name,
            owed_amount=amount,
            is_settled=participant.participant_id == self_id,
        )
        if mode is SplitMode.PERCENTAGE:
            share.percentage = participant.percentage
        elif mode is SplitMode.SHARES:
            # The units as typed, so a later recompute sees the same input
            share.share_units = (
                Decimal(1)
                if participant.shares is None
                else parse_decimal(participant.shares)
            )
        result.shares.append(share)

    return result


def _percentage_weights(participants: Sequence[ParticipantInput]) -> list[Decimal]:
    """Percentages as weights. Unset means an equal share, all zero means equal."""
    equal_share = HUNDRED / len(participants)
    weights = [
        equal_share if p.percentage is None else max(ZERO, parse_decimal(p.percentage))
        for p in participants
    ]
    if sum(weights) == 0:
        logger.debug("All percentages are zero, falling back to an equal split")
        return [Decimal(1)] * len(participants)
    return weights


def _share_weights(participants: Sequence[ParticipantInput]) -> list[Decimal]:
    """Share units as weights. Unset means one share, all zero means equal."""
    weights = [
        Decimal(1) if p.shares is None else max(ZERO, parse_decimal(p.shares))
        for p in participants
    ]
    if sum(weights) == 0:
        logger.debug("All share units are zero, falling back to an equal split")
        return [Decimal(1)] * len(participants)
    return weights


def _distribute(total: Decimal, weights: list[Decimal], places: int) -> list[Decimal]:
    """
    Split ``total`` proportionally to ``weights`` without losing a unit.

    Steps:
    1. Truncate each proportional amount to the minor unit
    2. Compute residual = total - sum of truncated amounts (never negative)
    3. Add the residual to the largest amount, the first one on ties

    With equal weights step 3 picks the first participant.
    """
    weight_sum = sum(weights)
    amounts = [floor_to_unit(total * w / weight_sum, places) for w in weights]

    residual = quantize(total, places) - sum(amounts)
    if residual != 0:
        largest = max(range(len(amounts)), key=lambda i: amounts[i])
        amounts[largest] += residual
        logger.debug(f"Applied rounding adjustment of {residual} to participant #{largest}")

    return amounts


def _allocate_manual(
    result: AllocationResult,
    participants: Sequence[ParticipantInput],
    self_id: str,
    places: int,
    tolerance: Decimal,
) -> AllocationResult:
    """Take manual amounts as entered and validate that they cover the total."""
    for participant in participants:
        amount = parse_decimal(participant.amount)
        if amount < 0:
            result.error = InvalidAmountError(
                amount,
                f"Amount for {participant.participant_id} can't be negative: {amount}",
            )
            return result
        result.shares.append(
            SplitShare(
                participant_id=participant.participant_id,
                display_name=participant.display_name,
                owed_amount=amount,
                is_settled=participant.participant_id == self_id,
            )
        )

    remainder = result.remainder
    if abs(remainder) > tolerance:
        result.error = UnbalancedSplitError(quantize(remainder, places))
    return result


def reallocate(
    shares: Sequence[SplitShare],
    total_amount: Decimal,
    currency: str,
    mode: SplitMode,
    **kwargs,
) -> AllocationResult:
    """
    Re-run the allocator over an existing split.

    Used after the total, the mode or the participant list changes. Each
    share's retained inputs are fed back in, with its current owed amount
    serving as the manual input.
    """
    inputs = [
        ParticipantInput(
            participant_id=s.participant_id,
            display_name=s.display_name,
            percentage=s.percentage,
            shares=str(s.share_units) if s.share_units is not None else None,
            amount=str(s.owed_amount),
        )
        for s in shares
    ]
    return allocate_split(total_amount, currency, inputs, mode, **kwargs)


def remove_participant(
    shares: Sequence[SplitShare],
    participant_id: str,
    total_amount: Decimal,
    currency: str,
    mode: SplitMode,
    **kwargs,
) -> AllocationResult:
    """
    Drop one participant's share from a split.

    Computed modes spread the total over whoever is left. Manual mode leaves
    the other amounts untouched, so the result usually reports a remainder.
    """
    remaining = [s for s in shares if s.participant_id != participant_id]
    return reallocate(remaining, total_amount, currency, mode, **kwargs)
