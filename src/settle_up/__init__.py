"""SettleUp - Split shared expenses and work out who owes whom."""

__version__ = "0.1.0"

from .allocator import allocate_split, reallocate, remove_participant
from .config import Settings, load_settings
from .exceptions import (
    InvalidAmountError,
    MixedCurrencyError,
    NoParticipantsError,
    SelfSettlementError,
    SettleUpError,
    SplitError,
    UnbalancedSplitError,
)
from .ledger import (
    balances_by_currency,
    compute_balances,
    total_owed,
    unsettled_debts,
)
from .models import (
    Advance,
    AllocationResult,
    Expense,
    NetBalance,
    Participant,
    ParticipantInput,
    Payer,
    Settlement,
    SplitMode,
    SplitShare,
    SuggestedPayment,
    UnsettledDebt,
)
from .netting import compute_settlements, record_settlement, summarize_by_currency
from .service import SettlementService

__all__ = [
    "Settings",
    "load_settings",
    "allocate_split",
    "reallocate",
    "remove_participant",
    "compute_balances",
    "balances_by_currency",
    "unsettled_debts",
    "total_owed",
    "compute_settlements",
    "summarize_by_currency",
    "record_settlement",
    "SettlementService",
    "Advance",
    "AllocationResult",
    "Expense",
    "NetBalance",
    "Participant",
    "ParticipantInput",
    "Payer",
    "Settlement",
    "SplitMode",
    "SplitShare",
    "SuggestedPayment",
    "UnsettledDebt",
    "SettleUpError",
    "SplitError",
    "InvalidAmountError",
    "NoParticipantsError",
    "UnbalancedSplitError",
    "MixedCurrencyError",
    "SelfSettlementError",
]
