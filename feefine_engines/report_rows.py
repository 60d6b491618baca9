"""
Module: feefine_engines.report_rows
Responsibility:
    Assemble one refund report row from an account, its refund attribution
    and the patron/item/instance reference data already looked up.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Reference data is passed
    in; absent records are passed as None.

Invariants enforced:
    - Every field is a string; monetary fields are exact 2-decimal Money
      renderings, dates are rendered in the caller's timezone.
    - Absent patron, item or instance data blanks the affected fields and
      never fails the row.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from zoneinfo import ZoneInfo

from feefine_engines.attribution import RefundAttribution
from feefine_kernel.domain.ledger import Account
from feefine_kernel.domain.sources import InstanceRecord, ItemRecord, PatronRecord


def format_report_date(value: datetime, tz: ZoneInfo) -> str:
    """Render e.g. ``1/3/2020 12:00 pm`` in the given timezone."""
    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    return f"{local.month}/{local.day}/{local.year} {hour}:{local.minute:02d} {meridiem}"


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class RefundReportEntry:
    """One row of the refund report."""

    patron_name: str
    patron_barcode: str
    patron_id: str
    patron_group: str
    fee_fine_type: str
    billed_amount: str
    date_billed: str
    paid_amount: str
    payment_method: str
    transaction_info: str
    transferred_amount: str
    transfer_account: str
    fee_fine_id: str
    refund_date: str
    refund_amount: str
    refund_action: str
    refund_reason: str
    staff_info: str
    patron_info: str
    item_barcode: str
    instance: str
    action_completion_date: str = ""
    staff_member_name: str = ""
    action_taken: str = ""

    def to_dict(self) -> dict[str, str]:
        """Row keyed by the report's camelCase column names."""
        return {_camel(f.name): getattr(self, f.name) for f in fields(self)}


class RefundReportRowBuilder:
    """Builds RefundReportEntry rows in a fixed timezone."""

    def __init__(self, tz: ZoneInfo):
        self.tz = tz

    def build(
        self,
        account: Account,
        attribution: RefundAttribution,
        patron: PatronRecord | None = None,
        item: ItemRecord | None = None,
        instance: InstanceRecord | None = None,
    ) -> RefundReportEntry:
        refund = attribution.action
        patron = patron or PatronRecord()
        # An instance title only shows alongside the item it came from
        title = instance.title if (item is not None and instance is not None) else ""

        return RefundReportEntry(
            patron_name=patron.display_name,
            patron_barcode=patron.barcode,
            patron_id=account.patron_id,
            patron_group=patron.group,
            fee_fine_type=account.fee_fine_type,
            billed_amount=str(account.amount),
            date_billed=format_report_date(account.created_at, self.tz),
            paid_amount=str(attribution.paid_amount),
            payment_method=attribution.payment_method,
            transaction_info=attribution.transaction_info,
            transferred_amount=str(attribution.transferred_amount),
            transfer_account=attribution.transfer_account,
            fee_fine_id=account.id,
            refund_date=format_report_date(refund.timestamp, self.tz),
            refund_amount=str(refund.amount),
            refund_action=refund.type_action,
            refund_reason=refund.method,
            staff_info=refund.staff_info,
            patron_info=refund.patron_info,
            item_barcode=item.barcode if item is not None else "",
            instance=title,
        )
