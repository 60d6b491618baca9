"""
Module: feefine_kernel.db.types
Responsibility: Column types that bridge domain value objects and SQL storage.
    Centralizes monetary precision and timestamp normalization so every model
    stores amounts and instants identically.
Architecture position: Kernel > DB.  May import from domain/values and
    domain/ledger only.  MUST NOT import from models/ or selectors/.

Invariants enforced:
    - Money columns are Numeric(12, 2); values load back as Money, never float.
    - Timestamps are stored as UTC and always load back timezone-aware, even
      on backends (SQLite) that drop the offset.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric
from sqlalchemy.types import TypeDecorator

from feefine_kernel.domain.ledger import as_utc
from feefine_kernel.domain.values import Money


class MoneyType(TypeDecorator):
    """
    Money stored as Numeric(12, 2).

    Guarantees:
        - process_bind_param: Money -> Decimal on INSERT/UPDATE.
        - process_result_value: Decimal -> Money on SELECT.
    """

    impl = Numeric(12, 2)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Money):
            return value.amount
        return Money.of(value).amount

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Money.of(Decimal(str(value)))


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime normalized to UTC on both sides."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
