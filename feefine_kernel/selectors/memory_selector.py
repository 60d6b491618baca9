"""
Module: feefine_kernel.selectors.memory_selector
Responsibility: In-memory implementations of the lookup ports, used when the
    ledger and reference data are already loaded (batch jobs, tests).
Architecture position: Kernel > Selectors.  Pure Python, no SQLAlchemy.

Invariants enforced:
    - Actions keep their recording order; list_actions sorts stably by
      timestamp so same-instant actions stay in recording order.
    - Deleted accounts read as None while their actions stay listed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

from feefine_kernel.domain.ledger import Account, ActionCategory, FeeFineAction, as_utc
from feefine_kernel.domain.sources import InstanceRecord, ItemRecord, PatronRecord


class InMemoryLedger:
    """LedgerSource over accounts and actions held in memory."""

    def __init__(
        self,
        accounts: Iterable[Account] = (),
        actions: Iterable[FeeFineAction] = (),
    ):
        self._accounts: dict[str, Account] = {a.id: a for a in accounts}
        self._actions: list[FeeFineAction] = list(actions)

    def add_account(self, account: Account) -> Account:
        self._accounts[account.id] = account
        return account

    def record(self, action: FeeFineAction) -> FeeFineAction:
        self._actions.append(action)
        return action

    def delete_account(self, account_id: str) -> None:
        self._accounts.pop(account_id, None)

    def get_account(self, account_id: str) -> Account | None:
        return self._accounts.get(account_id)

    def list_actions(self, account_id: str) -> list[FeeFineAction]:
        return sorted(
            (a for a in self._actions if a.account_id == account_id),
            key=lambda a: a.timestamp,
        )

    def list_refund_actions(
        self, start: datetime, end: datetime
    ) -> list[FeeFineAction]:
        start, end = as_utc(start), as_utc(end)
        return sorted(
            (
                a for a in self._actions
                if a.category is ActionCategory.REFUND and start <= a.timestamp < end
            ),
            key=lambda a: a.timestamp,
        )


class InMemoryPatronDirectory:
    def __init__(self, patrons: Mapping[str, PatronRecord] | None = None):
        self._patrons = dict(patrons or {})

    def get_patron(self, patron_id: str) -> PatronRecord | None:
        return self._patrons.get(patron_id)


class InMemoryInventory:
    def __init__(
        self,
        items: Mapping[str, ItemRecord] | None = None,
        instances: Mapping[str, InstanceRecord] | None = None,
    ):
        self._items = dict(items or {})
        self._instances = dict(instances or {})

    def get_item(self, item_id: str) -> ItemRecord | None:
        return self._items.get(item_id)

    def get_instance(self, instance_id: str) -> InstanceRecord | None:
        return self._instances.get(instance_id)


class FixedTimezone:
    """TimezoneSource returning a fixed identifier (None = unconfigured)."""

    def __init__(self, timezone: str | None):
        self._timezone = timezone

    def get_tenant_timezone(self) -> str | None:
        return self._timezone
