"""ORM models for the fee/fine ledger."""

from feefine_kernel.models.account import FeeFineAccount
from feefine_kernel.models.fee_fine_action import FeeFineActionRecord

__all__ = ["FeeFineAccount", "FeeFineActionRecord"]
