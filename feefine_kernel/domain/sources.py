"""Lookup ports consumed by the fee/fine engines and services.

Every lookup returns a record or ``None`` for "not found".  Retries,
timeouts and caching belong to the implementations, never to callers.

Implementations: FeeFineSelector (SQLAlchemy), the in-memory sources in
feefine_kernel.selectors.memory_selector.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from feefine_kernel.domain.ledger import Account, FeeFineAction


@dataclass(frozen=True)
class PatronRecord:
    """Patron identity as shown on reports."""

    last_name: str = ""
    first_name: str = ""
    middle_name: str = ""
    barcode: str = ""
    group: str = ""

    @property
    def display_name(self) -> str:
        """``Last, First Middle`` with absent parts dropped."""
        given = " ".join(part for part in (self.first_name, self.middle_name) if part)
        if self.last_name and given:
            return f"{self.last_name}, {given}"
        return self.last_name or given


@dataclass(frozen=True)
class ItemRecord:
    barcode: str = ""
    instance_id: str | None = None


@dataclass(frozen=True)
class InstanceRecord:
    title: str = ""


@runtime_checkable
class LedgerSource(Protocol):
    """Read access to accounts and their action history."""

    def get_account(self, account_id: str) -> Account | None:
        """Return the account, or None when it does not exist or was deleted."""
        ...

    def list_actions(self, account_id: str) -> Sequence[FeeFineAction]:
        """Return every action on the account, timestamp ordered, stable on ties."""
        ...

    def list_refund_actions(
        self, start: datetime, end: datetime
    ) -> Sequence[FeeFineAction]:
        """Return refund actions with ``start <= timestamp < end``, ordered."""
        ...


@runtime_checkable
class PatronDirectory(Protocol):
    def get_patron(self, patron_id: str) -> PatronRecord | None: ...


@runtime_checkable
class InventoryDirectory(Protocol):
    def get_item(self, item_id: str) -> ItemRecord | None: ...

    def get_instance(self, instance_id: str) -> InstanceRecord | None: ...


@runtime_checkable
class TimezoneSource(Protocol):
    def get_tenant_timezone(self) -> str | None:
        """Return an IANA timezone identifier, or None when unconfigured."""
        ...
