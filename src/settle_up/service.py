"""Service layer that composes allocation, ledger and netting.

The core functions are pure. This class holds what a caller carries between
calls: settings, the participant name map and the append-only list of
settlements recorded so far.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from decimal import Decimal

from .allocator import allocate_split
from .config import Settings
from .ledger import NameResolver, compute_balances, unsettled_debts
from .models import (
    Advance,
    AllocationResult,
    Expense,
    NetBalance,
    ParticipantInput,
    Settlement,
    SplitMode,
    SuggestedPayment,
    UnsettledDebt,
)
from .netting import compute_settlements, record_settlement, summarize_by_currency

logger = logging.getLogger(__name__)


class SettlementService:
    """Service for splitting expenses and settling up balances."""

    def __init__(
        self,
        settings: Settings,
        names: Mapping[str, str] | None = None,
        settlements: Iterable[Settlement] = (),
        advances: Iterable[Advance] = (),
    ):
        """Initialize the service with already recorded settlements."""
        self.settings = settings
        self.resolver = NameResolver(
            names,
            self_id=settings.self_participant_id,
            self_name=settings.self_display_name,
            unknown_name=settings.unknown_participant_name,
        )
        self.advances = list(advances)
        self._settlements = list(settlements)

    @property
    def settlements(self) -> tuple[Settlement, ...]:
        """Settlements recorded so far, oldest first."""
        return tuple(self._settlements)

    def allocate(
        self,
        total_amount: Decimal,
        participants: Sequence[ParticipantInput],
        mode: SplitMode,
        currency: str | None = None,
    ) -> AllocationResult:
        """Allocate a split using the configured currency precision."""
        result = allocate_split(
            total_amount,
            currency or self.settings.default_currency,
            participants,
            mode,
            self_id=self.settings.self_participant_id,
            places=self.settings.currency_places,
            tolerance=self.settings.tolerance,
        )
        if result.error is not None:
            logger.info(f"Split of {total_amount} ({mode.value}) rejected: {result.error}")
        return result

    def balances(self, expenses: Iterable[Expense], currency: str) -> list[NetBalance]:
        """Net balances for one currency, after recorded settlements."""
        return compute_balances(
            expenses,
            self._settlements,
            currency,
            names=self.resolver,
            advances=self.advances,
            trip_fund_id=self.settings.trip_fund_id,
        )

    def suggest(
        self, expenses: Iterable[Expense], currency: str
    ) -> list[SuggestedPayment]:
        """
        Suggest payments that settle everyone up in one currency.

        Args:
            expenses: All known expenses (other currencies are ignored)
            currency: The currency to settle

        Returns:
            Suggested payments, largest debts first
        """
        payments = compute_settlements(
            self.balances(expenses, currency),
            tolerance=self.settings.tolerance,
            places=self.settings.currency_places,
        )
        logger.info(f"Suggested {len(payments)} payments in {currency}")
        return payments

    def suggest_all(
        self, expenses: Iterable[Expense]
    ) -> dict[str, list[SuggestedPayment]]:
        """Suggest payments for every currency, one netting run per currency."""
        summary = summarize_by_currency(
            expenses,
            self._settlements,
            names=self.resolver,
            advances=self.advances,
            trip_fund_id=self.settings.trip_fund_id,
            tolerance=self.settings.tolerance,
            places=self.settings.currency_places,
        )
        logger.info(
            f"Suggested {sum(len(p) for p in summary.values())} payments "
            f"across {len(summary)} currencies"
        )
        return summary

    def unsettled_debts(self, expenses: Iterable[Expense]) -> list[UnsettledDebt]:
        """Shares still owed to you on expenses you paid."""
        debts = unsettled_debts(
            expenses, self_id=self.settings.self_participant_id, names=self.resolver
        )
        logger.info(f"Found {len(debts)} unsettled debts owed to you")
        return debts

    def mark_share_settled(self, expense: Expense, participant_id: str) -> Expense:
        """
        Mark one participant's share of an expense as settled.

        The expense itself is not modified.

        Args:
            expense: The expense holding the share
            participant_id: Whose share was paid

        Returns:
            A copy of the expense with that share marked settled

        Raises:
            ValueError: If the participant has no share in the expense
        """
        if not any(s.participant_id == participant_id for s in expense.split_allocations):
            raise ValueError(f"Participant {participant_id} not in expense {expense.id}")

        shares = [
            s.model_copy(update={"is_settled": True})
            if s.participant_id == participant_id
            else s
            for s in expense.split_allocations
        ]
        logger.info(f"Marked {participant_id}'s share of expense {expense.id} settled")
        return expense.model_copy(update={"split_allocations": shares})

    def record_settlement(
        self,
        from_participant_id: str,
        to_participant_id: str,
        amount: Decimal,
        currency: str,
        timestamp: datetime | None = None,
    ) -> Settlement:
        """Record a payment between two participants and keep it."""
        settlement = record_settlement(
            from_participant_id, to_participant_id, amount, currency, timestamp
        )
        self._settlements.append(settlement)
        return settlement

    def settle(
        self,
        suggestion: SuggestedPayment,
        amount: Decimal | None = None,
        timestamp: datetime | None = None,
    ) -> Settlement:
        """
        Confirm a suggested payment, in full or in part.

        Args:
            suggestion: The payment being confirmed
            amount: Amount actually paid (defaults to the full suggestion)
            timestamp: When it was paid (defaults to now)

        Returns:
            The recorded settlement
        """
        paid = suggestion.amount if amount is None else amount
        if paid < suggestion.amount:
            logger.info(
                f"Partial settlement: {paid} of {suggestion.amount} "
                f"{suggestion.currency}"
            )
        return self.record_settlement(
            suggestion.from_participant_id,
            suggestion.to_participant_id,
            paid,
            suggestion.currency,
            timestamp,
        )
