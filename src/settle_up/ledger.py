"""Balance ledger: net paid-minus-owed position per participant and currency."""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from .models import (
    SELF_DISPLAY_NAME,
    TRIP_FUND_ID,
    UNKNOWN_PARTICIPANT_NAME,
    USER_SELF_ID,
    Advance,
    Expense,
    NetBalance,
    Settlement,
    UnsettledDebt,
)
from .money import ZERO

logger = logging.getLogger(__name__)


class NameResolver:
    """Resolves participant ids to display names from one id-to-name map."""

    def __init__(
        self,
        names: Mapping[str, str] | None = None,
        self_id: str = USER_SELF_ID,
        self_name: str = SELF_DISPLAY_NAME,
        unknown_name: str = UNKNOWN_PARTICIPANT_NAME,
    ):
        self.names = {self_id: self_name, **(names or {})}
        self.unknown_name = unknown_name

    def __call__(self, participant_id: str) -> str:
        return self.names.get(participant_id, self.unknown_name)


def compute_balances(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    currency: str,
    *,
    names: Mapping[str, str] | NameResolver | None = None,
    advances: Iterable[Advance] = (),
    trip_fund_id: str = TRIP_FUND_ID,
) -> list[NetBalance]:
    """
    Compute net balances for one currency.

    Order of application:
    1. Advances credit whoever put money into the trip fund
    2. Each payer is credited what they paid (trip fund payments credit nobody)
    3. Each split share is debited from its participant
    4. Each settlement credits the payer and debits the receiver

    Records in other currencies are ignored. Participants whose balance is
    exactly zero are left out.

    Args:
        expenses: Expenses of any currency
        settlements: Recorded settlements of any currency
        currency: The currency to compute
        names: Participant id to display name map (or a prepared resolver)
        advances: Trip fund advances of any currency
        trip_fund_id: Payer id that stands for the pooled trip fund

    Returns:
        Net balances in first-seen participant order
    """
    resolve = names if isinstance(names, NameResolver) else NameResolver(names)
    balances: dict[str, Decimal] = {}

    def credit(participant_id: str, amount: Decimal) -> None:
        balances[participant_id] = balances.get(participant_id, ZERO) + amount

    for advance in advances:
        if advance.currency == currency:
            credit(advance.participant_id, advance.amount)

    for expense in expenses:
        if expense.currency != currency:
            continue
        for payer in expense.payers:
            if payer.participant_id == trip_fund_id:
                continue
            credit(payer.participant_id, payer.amount_paid)
        for share in expense.split_allocations:
            credit(share.participant_id, -share.owed_amount)

    # A settlement is a direct payment from debtor to creditor
    for settlement in settlements:
        if settlement.currency != currency:
            continue
        credit(settlement.from_participant_id, settlement.amount)
        credit(settlement.to_participant_id, -settlement.amount)

    result = [
        NetBalance(
            participant_id=participant_id,
            display_name=resolve(participant_id),
            currency=currency,
            amount=amount,
        )
        for participant_id, amount in balances.items()
        if amount != 0
    ]
    logger.debug(
        f"Computed {len(result)} non-zero balances in {currency} "
        f"({len(balances) - len(result)} settled)"
    )
    return result


def currencies_of(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement] = (),
    advances: Iterable[Advance] = (),
) -> list[str]:
    """Distinct currencies across all records, in first-seen order."""
    seen: dict[str, None] = {}
    for expense in expenses:
        seen.setdefault(expense.currency)
    for settlement in settlements:
        seen.setdefault(settlement.currency)
    for advance in advances:
        seen.setdefault(advance.currency)
    return list(seen)


def balances_by_currency(
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
    *,
    names: Mapping[str, str] | NameResolver | None = None,
    advances: Iterable[Advance] = (),
    trip_fund_id: str = TRIP_FUND_ID,
) -> dict[str, list[NetBalance]]:
    """
    Run the ledger once per currency present in the data.

    Balances are never combined across currencies.
    """
    expenses = list(expenses)
    settlements = list(settlements)
    advances = list(advances)
    resolve = names if isinstance(names, NameResolver) else NameResolver(names)

    return {
        currency: compute_balances(
            expenses,
            settlements,
            currency,
            names=resolve,
            advances=advances,
            trip_fund_id=trip_fund_id,
        )
        for currency in currencies_of(expenses, settlements, advances)
    }


def unsettled_debts(
    expenses: Iterable[Expense],
    *,
    self_id: str = USER_SELF_ID,
    names: Mapping[str, str] | NameResolver | None = None,
) -> list[UnsettledDebt]:
    """
    List the split shares other people still owe on expenses you paid.

    Shares marked ``is_settled`` and your own share are skipped. Expenses you
    didn't pay toward are skipped too, since nothing on them is owed to you.

    Args:
        expenses: Expenses of any currency
        self_id: Participant id of the person the debts are owed to
        names: Participant id to display name map (or a prepared resolver)

    Returns:
        Debts in expense order, then split order
    """
    resolve = names if isinstance(names, NameResolver) else NameResolver(names, self_id)
    debts: list[UnsettledDebt] = []

    for expense in expenses:
        if not any(p.participant_id == self_id for p in expense.payers):
            continue
        for share in expense.split_allocations:
            if share.is_settled or share.participant_id == self_id:
                continue
            debts.append(
                UnsettledDebt(
                    expense_id=expense.id,
                    expense_description=expense.description,
                    participant_id=share.participant_id,
                    display_name=share.display_name or resolve(share.participant_id),
                    amount=share.owed_amount,
                    currency=expense.currency,
                )
            )

    logger.debug(f"Found {len(debts)} unsettled debts owed to {self_id}")
    return debts


def total_owed(debts: Iterable[UnsettledDebt]) -> dict[str, Decimal]:
    """Sum unsettled debts per currency, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for debt in debts:
        totals[debt.currency] = totals.get(debt.currency, ZERO) + debt.amount
    return totals
