"""Pydantic domain models for SettleUp."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .exceptions import SplitError
from .money import TOLERANCE, ZERO

# Reserved participant ids
USER_SELF_ID = "user-self"
TRIP_FUND_ID = "trip-fund"

SELF_DISPLAY_NAME = "You"
UNKNOWN_PARTICIPANT_NAME = "Unknown Contact"


# ============================================================================
# Participants
# ============================================================================


class Participant(BaseModel):
    """A person who can take part in a split."""

    id: str
    display_name: str


class SplitMode(str, Enum):
    """How an expense total is divided between participants."""

    EQUAL = "equal"
    PERCENTAGE = "percentage"
    SHARES = "shares"
    MANUAL = "manual"


class ParticipantInput(BaseModel):
    """Raw per-participant input collected while editing a split.

    Values are kept as the text the user typed. Only the field that matches
    the selected mode is read.
    """

    participant_id: str
    display_name: str | None = None
    percentage: str | None = None
    shares: str | None = None
    amount: str | None = None


# ============================================================================
# Expenses
# ============================================================================


class SplitShare(BaseModel):
    """One participant's portion of one expense."""

    participant_id: str
    display_name: str | None = None
    owed_amount: Decimal = Field(ge=0)
    percentage: str | None = None  # percentage mode only
    share_units: Decimal | None = None  # shares mode only
    is_settled: bool = False  # paid outside netting, e.g. your own share


class Payer(BaseModel):
    """Someone who paid (part of) an expense."""

    participant_id: str
    amount_paid: Decimal = Field(ge=0)


class Expense(BaseModel):
    """A single shared cost."""

    id: str
    description: str = ""
    total_amount: Decimal = Field(gt=0)
    currency: str
    payers: list[Payer]
    split_allocations: list[SplitShare]

    @model_validator(mode="after")
    def check_totals(self) -> "Expense":
        """Payers and split allocations must both account for the total."""
        paid = sum((p.amount_paid for p in self.payers), ZERO)
        if abs(paid - self.total_amount) > TOLERANCE:
            raise ValueError(
                f"Expense {self.id}: payers cover {paid}, total is {self.total_amount}"
            )
        owed = sum((s.owed_amount for s in self.split_allocations), ZERO)
        if abs(owed - self.total_amount) > TOLERANCE:
            raise ValueError(
                f"Expense {self.id}: splits cover {owed}, total is {self.total_amount}"
            )
        return self


class Advance(BaseModel):
    """Money a participant put into the pooled trip fund up front."""

    participant_id: str
    amount: Decimal = Field(gt=0)
    currency: str


# ============================================================================
# Settlement
# ============================================================================


class Settlement(BaseModel):
    """A recorded direct payment between two participants.

    Settlements are append-only: once recorded they are never edited.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    from_participant_id: str
    to_participant_id: str
    amount: Decimal = Field(gt=0)
    currency: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class NetBalance(BaseModel):
    """A participant's net position in one currency.

    Positive means they are owed money, negative means they owe money.
    """

    model_config = ConfigDict(frozen=True)

    participant_id: str
    display_name: str
    currency: str
    amount: Decimal


class SuggestedPayment(BaseModel):
    """A payment that would move a debtor's balance toward a creditor's."""

    model_config = ConfigDict(frozen=True)

    from_participant_id: str
    to_participant_id: str
    from_name: str
    to_name: str
    amount: Decimal
    currency: str


class UnsettledDebt(BaseModel):
    """One split share still owed to the expense payer."""

    model_config = ConfigDict(frozen=True)

    expense_id: str
    expense_description: str
    participant_id: str
    display_name: str
    amount: Decimal
    currency: str


# ============================================================================
# Allocation result
# ============================================================================


class AllocationResult(BaseModel):
    """Outcome of allocating a split.

    Errors are carried as values so an editing form can show them inline
    instead of aborting.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    total_amount: Decimal
    currency: str
    mode: SplitMode
    shares: list[SplitShare] = Field(default_factory=list)
    error: SplitError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def assigned(self) -> Decimal:
        """Sum of all owed amounts."""
        return sum((s.owed_amount for s in self.shares), ZERO)

    @property
    def remainder(self) -> Decimal:
        """Signed amount of the total not yet assigned to anyone."""
        return self.total_amount - self.assigned

    def raise_for_error(self) -> "AllocationResult":
        """Raise the carried error, if any."""
        if self.error is not None:
            raise self.error
        return self


# ============================================================================
# Ledger file
# ============================================================================


class LedgerFile(BaseModel):
    """Everything the command line tool reads from and appends to disk."""

    participants: list[Participant] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)
    advances: list[Advance] = Field(default_factory=list)

    def names(self) -> dict[str, str]:
        """Participant id to display name map."""
        return {p.id: p.display_name for p in self.participants}
