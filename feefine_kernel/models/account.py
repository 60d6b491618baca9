"""
Module: feefine_kernel.models.account
Responsibility: ORM persistence for fee/fine accounts -- one row per charge
    billed to a patron.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - amount is the originally charged amount and is never updated.
    - Deletion is a tombstone (deleted_at), so actions recorded against the
      account stay readable by id; selectors report tombstoned accounts as
      not found.
"""

from datetime import datetime

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from feefine_kernel.db.base import Base
from feefine_kernel.domain.ledger import Account
from feefine_kernel.domain.values import Money


class FeeFineAccount(Base):
    """Charged fee/fine owned by a patron."""

    __tablename__ = "fee_fine_accounts"

    __table_args__ = (
        Index("idx_fee_fine_account_patron", "patron_id"),
    )

    patron_id: Mapped[str] = mapped_column(String(36), nullable=False)
    fee_fine_type: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Money] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_domain(self) -> Account:
        return Account(
            id=self.id,
            patron_id=self.patron_id,
            fee_fine_type=self.fee_fine_type,
            amount=self.amount,
            created_at=self.created_at,
            item_id=self.item_id,
        )

    def __repr__(self) -> str:
        return f"<FeeFineAccount {self.id} {self.fee_fine_type} {self.amount}>"
