"""
Module: feefine_kernel.models.fee_fine_action
Responsibility: ORM persistence for the append-only fee/fine action ledger.
Architecture position: Kernel > Models.  May import from db/ and domain/ only.

Invariants enforced:
    - seq is assigned by the database on insert and is strictly increasing;
      it breaks ties between actions recorded with the same timestamp.
    - account_id is a plain column, not a foreign key: tombstoning or
      removing an account never cascades to its recorded actions.
"""

from datetime import datetime

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from feefine_kernel.db.base import Base, new_id
from feefine_kernel.domain.ledger import FeeFineAction
from feefine_kernel.domain.values import Money


class FeeFineActionRecord(Base):
    """One ledger entry against a fee/fine account."""

    __tablename__ = "fee_fine_actions"

    __table_args__ = (
        Index("idx_fee_fine_action_account", "account_id", "timestamp"),
        Index("idx_fee_fine_action_type_time", "type_action", "timestamp"),
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, default=new_id)

    account_id: Mapped[str] = mapped_column(String(36), nullable=False)
    patron_id: Mapped[str] = mapped_column(String(36), nullable=False)
    type_action: Mapped[str] = mapped_column(String(100), nullable=False)
    method: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    amount: Mapped[Money] = mapped_column(nullable=False)
    balance: Mapped[Money] = mapped_column(nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    staff_info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    patron_info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    transaction_info: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def to_domain(self) -> FeeFineAction:
        return FeeFineAction(
            id=self.id,
            account_id=self.account_id,
            patron_id=self.patron_id,
            type_action=self.type_action,
            method=self.method,
            amount=self.amount,
            balance=self.balance,
            timestamp=self.timestamp,
            staff_info=self.staff_info,
            patron_info=self.patron_info,
            transaction_info=self.transaction_info,
        )

    def __repr__(self) -> str:
        return f"<FeeFineActionRecord {self.seq} {self.type_action} {self.amount}>"
