"""
Ledger -- Fee/fine account and action records.

Responsibility:
    Immutable domain records for a patron's fee/fine account and the ordered,
    append-only actions recorded against it, plus the closed classification
    of action labels into settlement categories.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Depends only on feefine_kernel.domain.values.

Invariants enforced:
    - Account.amount (the charged amount) is strictly positive.
    - FeeFineAction.amount is never negative.
    - Timestamps are timezone-aware; naive values are taken as UTC.
    - Every action label maps to exactly one ActionCategory.

Failure modes:
    - ValueError on construction with a non-positive charge or negative
      action amount.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from feefine_kernel.domain.values import Money


class ActionCategory(str, Enum):
    """Settlement category of a ledger action."""

    PAYMENT = "payment"
    TRANSFER = "transfer"
    REFUND = "refund"
    OTHER = "other"  # Waives, cancellations, notes, the initial charge


class ActionType(str, Enum):
    """Financial action labels as recorded in the ledger."""

    PAID_PARTIALLY = "Paid partially"
    PAID_FULLY = "Paid fully"
    TRANSFERRED_PARTIALLY = "Transferred partially"
    TRANSFERRED_FULLY = "Transferred fully"
    REFUNDED_PARTIALLY = "Refunded partially"
    REFUNDED_FULLY = "Refunded fully"

    @property
    def category(self) -> ActionCategory:
        return _CATEGORY_BY_TYPE[self]


_CATEGORY_BY_TYPE: dict[ActionType, ActionCategory] = {
    ActionType.PAID_PARTIALLY: ActionCategory.PAYMENT,
    ActionType.PAID_FULLY: ActionCategory.PAYMENT,
    ActionType.TRANSFERRED_PARTIALLY: ActionCategory.TRANSFER,
    ActionType.TRANSFERRED_FULLY: ActionCategory.TRANSFER,
    ActionType.REFUNDED_PARTIALLY: ActionCategory.REFUND,
    ActionType.REFUNDED_FULLY: ActionCategory.REFUND,
}

REFUND_ACTION_TYPES: tuple[ActionType, ...] = (
    ActionType.REFUNDED_PARTIALLY,
    ActionType.REFUNDED_FULLY,
)


def classify(type_action: str) -> ActionCategory:
    """Map a ledger action label to its settlement category."""
    try:
        return ActionType(type_action).category
    except ValueError:
        return ActionCategory.OTHER


def as_utc(value: datetime) -> datetime:
    """Return a timezone-aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class Account:
    """
    A single fee/fine charged to a patron.

    Contract:
        Created when the charge is billed; never mutated afterwards.  Its
        financial history lives entirely in its FeeFineActions.
    """

    id: str
    patron_id: str
    fee_fine_type: str
    amount: Money
    created_at: datetime
    item_id: str | None = None

    def __post_init__(self) -> None:
        if not self.amount.is_positive:
            raise ValueError(f"Charged amount must be positive: {self.amount}")
        object.__setattr__(self, "created_at", as_utc(self.created_at))


@dataclass(frozen=True)
class FeeFineAction:
    """
    One immutable ledger entry against an account.

    ``method`` is the payment method, transfer destination or refund reason
    depending on the action type.  ``balance`` is the account balance the
    ledger recorded after this action; it is displayed, never recomputed.
    """

    account_id: str
    patron_id: str
    type_action: str
    amount: Money
    balance: Money
    timestamp: datetime
    method: str = ""
    staff_info: str = ""
    patron_info: str = ""
    transaction_info: str = ""
    id: str | None = None

    def __post_init__(self) -> None:
        if self.amount.is_negative:
            raise ValueError(f"Action amount cannot be negative: {self.amount}")
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))

    @property
    def category(self) -> ActionCategory:
        return classify(self.type_action)
