"""
Pure domain layer.

Value objects, ledger records and lookup ports with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from feefine_kernel.domain.ledger import (
    REFUND_ACTION_TYPES,
    Account,
    ActionCategory,
    ActionType,
    FeeFineAction,
    as_utc,
    classify,
)
from feefine_kernel.domain.sources import (
    InstanceRecord,
    InventoryDirectory,
    ItemRecord,
    LedgerSource,
    PatronDirectory,
    PatronRecord,
    TimezoneSource,
)
from feefine_kernel.domain.values import Money
