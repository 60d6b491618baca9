"""
feefine_services.bootstrap -- Wire the fee/fine services from settings.

Responsibility:
    One place that turns FeeFineSettings plus the lookup ports into ready
    services, and applies the logging settings once per process.
"""

from __future__ import annotations

from dataclasses import dataclass

from feefine_config import FeeFineSettings, get_active_config
from feefine_kernel.domain.sources import (
    InventoryDirectory,
    LedgerSource,
    PatronDirectory,
    TimezoneSource,
)
from feefine_kernel.logging_config import configure_logging
from feefine_services.refund_check_service import RefundCheckService
from feefine_services.refund_report_service import RefundReportService


@dataclass(frozen=True)
class FeeFineServices:
    report: RefundReportService
    check: RefundCheckService
    settings: FeeFineSettings


def build_services(
    ledger: LedgerSource,
    patrons: PatronDirectory,
    inventory: InventoryDirectory,
    timezone_source: TimezoneSource | None = None,
    settings: FeeFineSettings | None = None,
) -> FeeFineServices:
    """Build both services; loads the active settings when none are given."""
    if settings is None:
        settings = get_active_config()
    configure_logging(level=settings.logging.level)

    return FeeFineServices(
        report=RefundReportService(
            ledger=ledger,
            patrons=patrons,
            inventory=inventory,
            timezone_source=timezone_source,
            settings=settings.report,
        ),
        check=RefundCheckService(ledger=ledger),
        settings=settings,
    )
