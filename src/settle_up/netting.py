"""Settlement netting: turning net balances into suggested payments."""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from decimal import Decimal

from .exceptions import InvalidAmountError, MixedCurrencyError, SelfSettlementError
from .ledger import NameResolver, balances_by_currency
from .models import (
    TRIP_FUND_ID,
    Advance,
    Expense,
    NetBalance,
    Settlement,
    SuggestedPayment,
)
from .money import DEFAULT_PLACES, TOLERANCE, quantize

logger = logging.getLogger(__name__)


class _Party:
    """Mutable working copy of one side of the matching."""

    __slots__ = ("balance", "remaining")

    def __init__(self, balance: NetBalance, remaining: Decimal):
        self.balance = balance
        self.remaining = remaining


def compute_settlements(
    balances: Iterable[NetBalance],
    *,
    tolerance: Decimal = TOLERANCE,
    places: int = DEFAULT_PLACES,
) -> list[SuggestedPayment]:
    """
    Compute payments that bring every balance in one currency to zero.

    Greedy largest-pair matching:
    1. Split into creditors (> tolerance) and debtors (< -tolerance)
    2. Sort both by magnitude, largest first (stable, so ties keep input order)
    3. Match the head debtor with the head creditor for the smaller of the two
       remainders, dropping each one once its remainder falls under tolerance
    4. Stop when either side runs out; what's left is rounding noise

    This doesn't always find the fewest possible payments, but its output is
    deterministic.

    Args:
        balances: Net balances, all in the same currency
        tolerance: Balances and payments at or below this are ignored
        places: Decimal places used to round suggested amounts

    Returns:
        Suggested payments in the order they were matched

    Raises:
        MixedCurrencyError: If the balances are in more than one currency
    """
    balances = list(balances)
    currencies = list(dict.fromkeys(b.currency for b in balances))
    if len(currencies) > 1:
        raise MixedCurrencyError(currencies)
    if not balances:
        return []

    creditors = [_Party(b, b.amount) for b in balances if b.amount > tolerance]
    debtors = [_Party(b, -b.amount) for b in balances if b.amount < -tolerance]
    creditors.sort(key=lambda p: p.remaining, reverse=True)
    debtors.sort(key=lambda p: p.remaining, reverse=True)

    payments: list[SuggestedPayment] = []
    while debtors and creditors:
        debtor = debtors[0]
        creditor = creditors[0]
        amount = min(debtor.remaining, creditor.remaining)

        if amount > tolerance:
            payments.append(
                SuggestedPayment(
                    from_participant_id=debtor.balance.participant_id,
                    to_participant_id=creditor.balance.participant_id,
                    from_name=debtor.balance.display_name,
                    to_name=creditor.balance.display_name,
                    amount=quantize(amount, places),
                    currency=currencies[0],
                )
            )

        debtor.remaining -= amount
        creditor.remaining -= amount

        if debtor.remaining < tolerance:
            debtors.pop(0)
        if creditor.remaining < tolerance:
            creditors.pop(0)

    logger.debug(f"Netted {len(balances)} balances into {len(payments)} payments")
    return payments


def summarize_by_currency(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    *,
    names: Mapping[str, str] | NameResolver | None = None,
    advances: Iterable[Advance] = (),
    trip_fund_id: str = TRIP_FUND_ID,
    tolerance: Decimal = TOLERANCE,
    places: int = DEFAULT_PLACES,
) -> dict[str, list[SuggestedPayment]]:
    """
    Suggested payments for every currency in the data set.

    An empty list for a currency means everyone is settled up in it.
    """
    per_currency = balances_by_currency(
        expenses,
        settlements,
        names=names,
        advances=advances,
        trip_fund_id=trip_fund_id,
    )
    return {
        currency: compute_settlements(balances, tolerance=tolerance, places=places)
        for currency, balances in per_currency.items()
    }


def record_settlement(
    from_participant_id: str,
    to_participant_id: str,
    amount: Decimal,
    currency: str,
    timestamp: datetime | None = None,
) -> Settlement:
    """
    Create a settlement record for a confirmed payment.

    The amount may be less than what was suggested; recomputing balances
    afterwards leaves the rest outstanding.

    Raises:
        InvalidAmountError: If the amount is not positive
        SelfSettlementError: If someone would be paying themselves
    """
    if amount <= 0:
        raise InvalidAmountError(amount)
    if from_participant_id == to_participant_id:
        raise SelfSettlementError(from_participant_id)

    settlement = Settlement(
        from_participant_id=from_participant_id,
        to_participant_id=to_participant_id,
        amount=amount,
        currency=currency,
        timestamp=timestamp or datetime.now(UTC),
    )
    logger.info(
        f"Recorded settlement {from_participant_id} -> {to_participant_id}: "
        f"{amount} {currency}"
    )
    return settlement
