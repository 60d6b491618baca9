"""
feefine_services.refund_check_service -- Pre-write refund eligibility checks.

Responsibility:
    Answer "may this amount be refunded?" for one account or a group of
    accounts, before a refund action is recorded.

Architecture position:
    Services -- orchestration over LedgerReplayEngine and
    RefundEligibilityCalculator with a LedgerSource port.

Failure modes:
    None raised for bad input or missing accounts.  Malformed or
    non-positive amounts and unknown accounts come back as a denied
    RefundEligibilityResult carrying the error kind, so a UI can show the
    message next to the amount field.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import uuid4

from feefine_engines.eligibility import (
    RefundEligibilityCalculator,
    RefundEligibilityResult,
    RefundErrorKind,
    parse_requested_amount,
)
from feefine_engines.ledger_replay import LedgerReplay, LedgerReplayEngine
from feefine_kernel.domain.sources import LedgerSource
from feefine_kernel.domain.values import Money
from feefine_kernel.exceptions import AmountNotPositiveError, InvalidAmountError
from feefine_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.refund_check")


class RefundCheckService:
    """Refund eligibility for single accounts and bulk selections."""

    def __init__(
        self,
        ledger: LedgerSource,
        replay_engine: LedgerReplayEngine | None = None,
        calculator: RefundEligibilityCalculator | None = None,
    ):
        self._ledger = ledger
        self._replay_engine = replay_engine or LedgerReplayEngine()
        self._calculator = calculator or RefundEligibilityCalculator()

    def check_refund(self, account_id: str, amount: object) -> RefundEligibilityResult:
        """Check a refund of ``amount`` against one account."""
        with LogContext.bind(
            correlation_id=str(uuid4()), account_id=account_id, operation="refund_check"
        ):
            requested = self._parse(amount)
            if isinstance(requested, RefundEligibilityResult):
                return requested

            result = self._calculator.evaluate(
                requested=requested, replay=self._load(account_id)
            )
            self._log_result(result, account_count=1)
            return result

    def check_refund_bulk(
        self, account_ids: Iterable[str], amount: object
    ) -> RefundEligibilityResult:
        """
        Check one refund of ``amount`` spread over several accounts.

        Duplicate ids count once.  The request is denied outright when any
        account is missing, even if the others could cover the amount.
        """
        unique_ids = list(dict.fromkeys(account_ids))
        with LogContext.bind(correlation_id=str(uuid4()), operation="refund_check_bulk"):
            requested = self._parse(amount)
            if isinstance(requested, RefundEligibilityResult):
                return requested

            replays = [self._load(account_id) for account_id in unique_ids]
            result = self._calculator.evaluate_batch(requested=requested, replays=replays)
            self._log_result(result, account_count=len(unique_ids))
            return result

    # ------------------------------------------------------------------

    def _parse(self, amount: object) -> Money | RefundEligibilityResult:
        try:
            return parse_requested_amount(amount)
        except InvalidAmountError:
            kind = RefundErrorKind.INVALID_AMOUNT
        except AmountNotPositiveError:
            kind = RefundErrorKind.AMOUNT_NOT_POSITIVE
        logger.info(
            "refund_check_rejected",
            extra={"error_kind": kind.value, "requested": str(amount)},
        )
        return RefundEligibilityResult.denied(kind)

    def _load(self, account_id: str) -> LedgerReplay | None:
        account = self._ledger.get_account(account_id)
        if account is None:
            logger.warning("refund_check_account_not_found", extra={"account_id": account_id})
            return None
        return self._replay_engine.replay(
            account_id=account.id,
            actions=self._ledger.list_actions(account.id),
            billed_amount=account.amount,
        )

    @staticmethod
    def _log_result(result: RefundEligibilityResult, account_count: int) -> None:
        logger.info(
            "refund_check_completed",
            extra={
                "allowed": result.allowed,
                "account_count": account_count,
                "requested": str(result.requested_amount),
                "remaining_refundable": str(result.remaining_refundable),
                "error_kind": result.error_kind.value if result.error_kind else None,
            },
        )
