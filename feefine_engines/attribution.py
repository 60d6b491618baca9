"""
Module: feefine_engines.attribution
Responsibility:
    Reconstruct, for every refund on an account, which earlier payments and
    transfers it refunds: the unconsumed pool it draws on, the amounts and
    labels shown on the refund report, and the FIFO consumption it leaves
    behind for later refunds.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes feefine_engines.ledger_replay output.

Algorithm (one left-to-right fold over the replayed ledger):
    - Every PAYMENT/TRANSFER opens a pool entry whose remaining-unconsumed
      amount starts at the action amount.  Remaining amounts live in an
      accumulator keyed by the action's ledger sequence and scoped to this
      fold; nothing is shared across accounts or calls.
    - A REFUND sees the pool entries opened before it with remaining > 0.
      The report shows the total of their original amounts per category and
      their labels (one distinct label -> that label, several ->
      MULTIPLE_LABELS, none -> "").
    - The refund amount is then consumed oldest-first from payments, then
      oldest-first from transfers.  Entries consumed to zero leave the pool
      for every later refund.

Invariants enforced:
    - Conservation: consumed_from_payments + consumed_from_transfers +
      unattributed == refund amount, for every refund.
    - Monotonic consumption: total consumption on an account never exceeds
      the total of its payment and transfer amounts.

Failure modes:
    - None raised.  A refund larger than its pool (upstream data
      inconsistency) is attributed as far as the pool allows; the shortfall
      is reported as ``unattributed`` and logged.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from feefine_engines.ledger_replay import LedgerReplay, ReplayedAction
from feefine_engines.tracer import traced_engine
from feefine_kernel.domain.ledger import ActionCategory, FeeFineAction
from feefine_kernel.domain.values import Money
from feefine_kernel.logging_config import get_logger

logger = get_logger("engines.attribution")

MULTIPLE_LABELS = "See Fee/fine details page"


def collapse_labels(labels: Iterable[str]) -> str:
    """Single distinct label -> that label; several -> MULTIPLE_LABELS; none -> ""."""
    distinct = list(dict.fromkeys(labels))
    if not distinct:
        return ""
    if len(distinct) == 1:
        return distinct[0]
    return MULTIPLE_LABELS


@dataclass(frozen=True)
class RefundAttribution:
    """
    What a single refund refunds.

    ``paid_amount``/``transferred_amount`` and the three labels describe the
    pool the refund drew on and are what the refund report renders.  The
    ``consumed_*`` amounts are this refund's own FIFO draw on that pool.
    """

    refund: ReplayedAction
    paid_amount: Money
    payment_method: str
    transaction_info: str
    transferred_amount: Money
    transfer_account: str
    consumed_from_payments: Money
    consumed_from_transfers: Money
    unattributed: Money
    pool_sequences: tuple[int, ...] = ()

    @property
    def action(self) -> FeeFineAction:
        return self.refund.action

    @property
    def consumed(self) -> Money:
        return self.consumed_from_payments + self.consumed_from_transfers


class _Pool:
    """Unconsumed payment/transfer entries for one account's fold."""

    def __init__(self) -> None:
        self._entries: list[ReplayedAction] = []
        self._remaining: dict[int, Money] = {}

    def open(self, entry: ReplayedAction) -> None:
        self._entries.append(entry)
        self._remaining[entry.sequence] = entry.amount

    def live(self, category: ActionCategory) -> list[ReplayedAction]:
        return [
            e for e in self._entries
            if e.category is category and self._remaining[e.sequence].is_positive
        ]

    def consume(self, entries: list[ReplayedAction], amount: Money) -> tuple[Money, Money]:
        """Draw ``amount`` oldest-first; return (consumed, still_owed)."""
        consumed = Money.zero()
        owed = amount
        for entry in entries:
            if owed.is_zero:
                break
            available = self._remaining[entry.sequence]
            take = min(available, owed)
            self._remaining[entry.sequence] = available - take
            consumed = consumed + take
            owed = owed - take
        return consumed, owed


class RefundAttributionEngine:
    """
    Attribute every refund on one account to the payments/transfers it refunds.

    Contract:
        Pure function of a LedgerReplay.  No I/O.
    Guarantees:
        - One RefundAttribution per REFUND action, in ledger order.
        - Consumption state persists across successive refunds of the same
          account and never leaks outside one call.
    Non-goals:
        - Does not re-validate refund writes; that is the eligibility
          checker's job before the refund is recorded.
    """

    @traced_engine("refund_attribution", "1.0", fingerprint_fields=("replay",))
    def attribute(self, replay: LedgerReplay) -> tuple[RefundAttribution, ...]:
        pool = _Pool()
        attributions: list[RefundAttribution] = []

        for entry in replay.actions:
            if entry.category in (ActionCategory.PAYMENT, ActionCategory.TRANSFER):
                if entry.amount.is_positive:
                    pool.open(entry)
            elif entry.category is ActionCategory.REFUND:
                attributions.append(self._attribute_refund(replay.account_id, pool, entry))

        return tuple(attributions)

    def _attribute_refund(
        self, account_id: str, pool: _Pool, refund: ReplayedAction
    ) -> RefundAttribution:
        payments = pool.live(ActionCategory.PAYMENT)
        transfers = pool.live(ActionCategory.TRANSFER)

        from_payments, owed = pool.consume(payments, refund.amount)
        from_transfers, owed = pool.consume(transfers, owed)

        if owed.is_positive:
            logger.warning(
                "refund_exceeds_attributable_pool",
                extra={
                    "account_id": account_id,
                    "refund_sequence": refund.sequence,
                    "refund_amount": str(refund.amount),
                    "unattributed": str(owed),
                },
            )

        return RefundAttribution(
            refund=refund,
            paid_amount=Money.total(p.amount for p in payments),
            payment_method=collapse_labels(p.action.method for p in payments),
            transaction_info=collapse_labels(p.action.transaction_info for p in payments),
            transferred_amount=Money.total(t.amount for t in transfers),
            transfer_account=collapse_labels(t.action.method for t in transfers),
            consumed_from_payments=from_payments,
            consumed_from_transfers=from_transfers,
            unattributed=owed,
            pool_sequences=tuple(e.sequence for e in payments + transfers),
        )
