"""Custom exceptions for SettleUp."""

from decimal import Decimal


class SettleUpError(Exception):
    """Base exception for all SettleUp errors."""

    pass


class ConfigurationError(SettleUpError):
    """Raised when configuration is invalid or missing."""

    pass


class SplitError(SettleUpError):
    """Base class for errors produced while allocating a split."""

    pass


class InvalidAmountError(SplitError):
    """Raised when an expense total or settlement amount is not positive."""

    def __init__(self, amount: Decimal, message: str | None = None):
        self.amount = amount
        super().__init__(message or f"Amount must be positive, got {amount}")


class NoParticipantsError(SplitError):
    """Raised when a computed split mode is given nobody to split between."""

    def __init__(self, mode: str, message: str | None = None):
        self.mode = mode
        super().__init__(
            message or f"Cannot split {mode} between zero participants"
        )


class UnbalancedSplitError(SplitError):
    """Raised when manual split amounts don't add up to the expense total.

    The remainder is signed: positive means part of the total is still
    unassigned, negative means the split assigns more than the total.
    """

    def __init__(self, remainder: Decimal, message: str | None = None):
        self.remainder = remainder
        super().__init__(message or f"Split is unbalanced. Remaining: {remainder}")


class MixedCurrencyError(SettleUpError):
    """Raised when netting is asked to combine balances in different currencies."""

    def __init__(self, currencies: list[str], message: str | None = None):
        self.currencies = currencies
        super().__init__(
            message
            or f"Cannot net balances across currencies: {', '.join(currencies)}"
        )


class SelfSettlementError(SettleUpError):
    """Raised when a settlement's payer and receiver are the same person."""

    def __init__(self, participant_id: str, message: str | None = None):
        self.participant_id = participant_id
        super().__init__(
            message
            or f"Settlement payer and receiver are the same: {participant_id}"
        )
