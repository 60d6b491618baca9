"""
Module: feefine_engines.eligibility
Responsibility:
    Decide whether a requested refund amount is admissible against the
    refundable balance of one account or a batch of accounts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes feefine_engines.ledger_replay output; the check service does
    the lookups.

Invariants enforced:
    - remaining refundable = paid + transferred - refunded, accumulated on
      rounded Money values so it matches stored display amounts exactly.
    - Requesting exactly the remaining amount is allowed; one cent more is
      not.
    - The remaining amount is always returned, allowed or not.

Failure modes:
    - parse_requested_amount raises InvalidAmountError / AmountNotPositiveError.
      The engine's evaluate methods never raise.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from feefine_engines.ledger_replay import LedgerReplay
from feefine_engines.tracer import traced_engine
from feefine_kernel.domain.values import Money
from feefine_kernel.exceptions import AmountNotPositiveError, InvalidAmountError
from feefine_kernel.logging_config import get_logger

logger = get_logger("engines.eligibility")


class RefundErrorKind(str, Enum):
    """Why a refund request was denied."""

    INVALID_AMOUNT = "INVALID_AMOUNT"
    AMOUNT_NOT_POSITIVE = "AMOUNT_NOT_POSITIVE"
    AMOUNT_EXCEEDS_REFUNDABLE = "AMOUNT_EXCEEDS_REFUNDABLE"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    NO_ACCOUNTS = "NO_ACCOUNTS"


ERROR_MESSAGES: dict[RefundErrorKind, str] = {
    RefundErrorKind.INVALID_AMOUNT: "Invalid amount entered",
    RefundErrorKind.AMOUNT_NOT_POSITIVE: "Amount must be positive",
    RefundErrorKind.AMOUNT_EXCEEDS_REFUNDABLE: "Refund amount exceeds refundable amount",
    RefundErrorKind.ACCOUNT_NOT_FOUND: "Fee/fine account was not found",
    RefundErrorKind.NO_ACCOUNTS: "No fee/fine accounts were given",
}


@dataclass(frozen=True)
class RefundEligibilityResult:
    allowed: bool
    remaining_refundable: Money
    requested_amount: Money | None = None
    error_kind: RefundErrorKind | None = None

    @property
    def error_message(self) -> str | None:
        if self.error_kind is None:
            return None
        return ERROR_MESSAGES[self.error_kind]

    @property
    def remaining_after_refund(self) -> Money | None:
        """Refundable amount left once an allowed request is recorded."""
        if not self.allowed or self.requested_amount is None:
            return None
        return self.remaining_refundable - self.requested_amount

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "allowed": self.allowed,
            "remainingRefundable": str(self.remaining_refundable),
        }
        if self.requested_amount is not None:
            payload["amount"] = str(self.requested_amount)
        if self.remaining_after_refund is not None:
            payload["remainingAmount"] = str(self.remaining_after_refund)
        if self.error_kind is not None:
            payload["errorKind"] = self.error_kind.value
            payload["errorMessage"] = self.error_message
        return payload

    @classmethod
    def denied(
        cls,
        kind: RefundErrorKind,
        remaining: Money | None = None,
        requested: Money | None = None,
    ) -> RefundEligibilityResult:
        return cls(
            allowed=False,
            remaining_refundable=remaining if remaining is not None else Money.zero(),
            requested_amount=requested,
            error_kind=kind,
        )


def parse_requested_amount(raw: object) -> Money:
    """
    Parse a user-supplied refund amount.

    Positivity is judged after rounding to cents, so "0.001" is rejected
    rather than accepted as a zero refund.

    Raises:
        InvalidAmountError: Not a finite number (including None, "", "abc").
        AmountNotPositiveError: Rounds to zero or below.
    """
    if isinstance(raw, Money):
        amount = raw
    else:
        if raw is None or isinstance(raw, bool):
            raise InvalidAmountError(raw)
        try:
            amount = Money.of(raw if isinstance(raw, (Decimal, int, float)) else str(raw))
        except ValueError as e:
            raise InvalidAmountError(raw) from e

    if not amount.is_positive:
        raise AmountNotPositiveError(raw)
    return amount


class RefundEligibilityCalculator:
    """
    Evaluate refund requests against replayed ledgers.

    Contract:
        Pure functions.  A missing account is represented by ``None`` in the
        replays given to ``evaluate_batch`` and degrades to zero refundable.
    Guarantees:
        - A batch is allowed only if every account exists and the request
          does not exceed the combined remaining amount.
    """

    def remaining(self, replay: LedgerReplay) -> Money:
        if replay.is_overrefunded:
            logger.warning(
                "refundable_balance_negative",
                extra={
                    "account_id": replay.account_id,
                    "settled": str(replay.settled),
                    "total_refunded": str(replay.total_refunded),
                },
            )
        return replay.refundable

    @traced_engine("refund_eligibility", "1.0", fingerprint_fields=("requested", "replay"))
    def evaluate(
        self, requested: Money, replay: LedgerReplay | None
    ) -> RefundEligibilityResult:
        if replay is None:
            return RefundEligibilityResult.denied(
                RefundErrorKind.ACCOUNT_NOT_FOUND, requested=requested
            )
        return self._decide(requested, self.remaining(replay))

    @traced_engine("refund_eligibility", "1.0", fingerprint_fields=("requested", "replays"))
    def evaluate_batch(
        self, requested: Money, replays: Sequence[LedgerReplay | None]
    ) -> RefundEligibilityResult:
        if not replays:
            return RefundEligibilityResult.denied(
                RefundErrorKind.NO_ACCOUNTS, requested=requested
            )

        combined = Money.total(self.remaining(r) for r in replays if r is not None)
        if any(r is None for r in replays):
            return RefundEligibilityResult.denied(
                RefundErrorKind.ACCOUNT_NOT_FOUND, remaining=combined, requested=requested
            )
        return self._decide(requested, combined)

    def _decide(self, requested: Money, remaining: Money) -> RefundEligibilityResult:
        if requested <= remaining:
            return RefundEligibilityResult(
                allowed=True,
                remaining_refundable=remaining,
                requested_amount=requested,
            )
        return RefundEligibilityResult.denied(
            RefundErrorKind.AMOUNT_EXCEEDS_REFUNDABLE,
            remaining=remaining,
            requested=requested,
        )
