"""
Module: feefine_kernel.selectors.feefine_selector
Responsibility: SQLAlchemy implementation of the LedgerSource port -- reads
    accounts and their ordered action history.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Actions are ordered by (timestamp, seq): insertion order breaks ties.
    - Tombstoned accounts read as None; their actions remain readable.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from feefine_kernel.domain.ledger import REFUND_ACTION_TYPES, Account, FeeFineAction, as_utc
from feefine_kernel.logging_config import get_logger
from feefine_kernel.models.account import FeeFineAccount
from feefine_kernel.models.fee_fine_action import FeeFineActionRecord
from feefine_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.feefine")


class FeeFineSelector(BaseSelector[FeeFineActionRecord]):
    """
    Read-only access to fee/fine accounts and actions.

    Contract:
        Implements ``LedgerSource``.  Returns domain dataclasses only.
    """

    def get_account(self, account_id: str) -> Account | None:
        row = self.session.get(FeeFineAccount, account_id)
        if row is None or row.is_deleted:
            logger.debug("account_not_found", extra={"account_id": account_id})
            return None
        return row.to_domain()

    def list_actions(self, account_id: str) -> list[FeeFineAction]:
        query = (
            select(FeeFineActionRecord)
            .where(FeeFineActionRecord.account_id == account_id)
            .order_by(FeeFineActionRecord.timestamp, FeeFineActionRecord.seq)
        )
        return [row.to_domain() for row in self.session.scalars(query)]

    def list_refund_actions(
        self, start: datetime, end: datetime
    ) -> list[FeeFineAction]:
        query = (
            select(FeeFineActionRecord)
            .where(
                FeeFineActionRecord.type_action.in_(
                    [t.value for t in REFUND_ACTION_TYPES]
                ),
                FeeFineActionRecord.timestamp >= as_utc(start),
                FeeFineActionRecord.timestamp < as_utc(end),
            )
            .order_by(FeeFineActionRecord.timestamp, FeeFineActionRecord.seq)
        )
        actions = [row.to_domain() for row in self.session.scalars(query)]
        logger.debug(
            "refund_actions_selected",
            extra={"start": start, "end": end, "count": len(actions)},
        )
        return actions
