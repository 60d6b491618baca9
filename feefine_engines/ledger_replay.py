"""
Module: feefine_engines.ledger_replay
Responsibility:
    Replay one account's action history in ledger order, classifying each
    action and accumulating cumulative paid, transferred and refunded totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import feefine_kernel domain types and logging.

Invariants enforced:
    - Ordering: actions are sorted by timestamp; actions with the same
      timestamp keep the order they were given in (stable sort).  The
      resulting position is the action's sequence number, which downstream
      attribution uses as the action's identity.
    - Cumulative totals are sums of already-rounded Money values, so they
      match stored display amounts exactly.
    - Purity: identical inputs produce identical outputs.

Failure modes:
    - None raised.  Balance cross-check mismatches are flagged on the
      replayed action and logged; the stored balance is always what gets
      displayed.

Usage:
    from feefine_engines.ledger_replay import LedgerReplayEngine

    replay = LedgerReplayEngine().replay(
        account_id=account.id,
        actions=source.list_actions(account.id),
        billed_amount=account.amount,
    )
    replay.refundable  # paid + transferred - refunded, floored at zero
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from feefine_engines.tracer import traced_engine
from feefine_kernel.domain.ledger import ActionCategory, FeeFineAction
from feefine_kernel.domain.values import Money
from feefine_kernel.logging_config import get_logger

logger = get_logger("engines.ledger_replay")


@dataclass(frozen=True)
class ReplayedAction:
    """
    An action annotated with its ledger position and running totals.

    ``paid_to_date`` and friends include this action.  ``balance_matches`` is
    None when no cross-check was possible (no billed amount, or an OTHER
    action whose effect on the balance is not modelled).
    """

    sequence: int
    action: FeeFineAction
    category: ActionCategory
    paid_to_date: Money
    transferred_to_date: Money
    refunded_to_date: Money
    balance_matches: bool | None = None

    @property
    def amount(self) -> Money:
        return self.action.amount


@dataclass(frozen=True)
class LedgerReplay:
    """Replayed history of a single account."""

    account_id: str
    actions: tuple[ReplayedAction, ...]
    total_paid: Money
    total_transferred: Money
    total_refunded: Money

    @property
    def is_empty(self) -> bool:
        return not self.actions

    @property
    def settled(self) -> Money:
        """Everything paid or transferred so far."""
        return self.total_paid + self.total_transferred

    @property
    def is_overrefunded(self) -> bool:
        return self.total_refunded > self.settled

    @property
    def refundable(self) -> Money:
        """Paid plus transferred minus refunded, floored at zero."""
        return self.settled.clamped_sub(self.total_refunded)

    def of_category(self, category: ActionCategory) -> tuple[ReplayedAction, ...]:
        return tuple(a for a in self.actions if a.category is category)


class LedgerReplayEngine:
    """
    Walk an account's ledger once, left to right.

    Contract:
        Pure function of (account_id, actions, billed_amount).  No I/O.
    Guarantees:
        - Output actions are in ledger order with sequence numbers 0..n-1.
        - PAYMENT and TRANSFER actions increase their cumulative totals,
          REFUND actions increase the refunded total, OTHER leaves totals
          unchanged.
    Non-goals:
        - Does not validate that the stored balances are correct; mismatches
          are only flagged.
        - Does not decide refund eligibility or attribution.
    """

    @traced_engine("ledger_replay", "1.0", fingerprint_fields=("account_id", "actions"))
    def replay(
        self,
        account_id: str,
        actions: Sequence[FeeFineAction],
        billed_amount: Money | None = None,
    ) -> LedgerReplay:
        ordered = sorted(actions, key=lambda a: a.timestamp)

        paid = Money.zero()
        transferred = Money.zero()
        refunded = Money.zero()
        running_balance = billed_amount
        replayed: list[ReplayedAction] = []

        for sequence, action in enumerate(ordered):
            category = action.category
            expected: Money | None = None

            if category is ActionCategory.PAYMENT:
                paid = paid + action.amount
                if running_balance is not None:
                    expected = running_balance.clamped_sub(action.amount)
            elif category is ActionCategory.TRANSFER:
                transferred = transferred + action.amount
                if running_balance is not None:
                    expected = running_balance.clamped_sub(action.amount)
            elif category is ActionCategory.REFUND:
                refunded = refunded + action.amount
                expected = running_balance

            balance_matches = None
            if expected is not None:
                balance_matches = expected == action.balance
                if not balance_matches:
                    logger.warning(
                        "ledger_balance_mismatch",
                        extra={
                            "account_id": account_id,
                            "sequence": sequence,
                            "type_action": action.type_action,
                            "expected_balance": str(expected),
                            "stored_balance": str(action.balance),
                        },
                    )

            replayed.append(
                ReplayedAction(
                    sequence=sequence,
                    action=action,
                    category=category,
                    paid_to_date=paid,
                    transferred_to_date=transferred,
                    refunded_to_date=refunded,
                    balance_matches=balance_matches,
                )
            )
            # The ledger's own figure carries forward, so one bad entry is
            # flagged once rather than on every later action.
            if running_balance is not None:
                running_balance = action.balance

        result = LedgerReplay(
            account_id=account_id,
            actions=tuple(replayed),
            total_paid=paid,
            total_transferred=transferred,
            total_refunded=refunded,
        )

        if result.is_overrefunded:
            logger.warning(
                "ledger_overrefunded",
                extra={
                    "account_id": account_id,
                    "total_paid": str(paid),
                    "total_transferred": str(transferred),
                    "total_refunded": str(refunded),
                },
            )

        logger.debug(
            "ledger_replayed",
            extra={
                "account_id": account_id,
                "action_count": len(replayed),
                "total_paid": str(paid),
                "total_transferred": str(transferred),
                "total_refunded": str(refunded),
            },
        )
        return result
