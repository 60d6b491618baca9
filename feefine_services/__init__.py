"""
feefine_services -- Package init and public API.

Responsibility:
    Orchestration services that compose the pure engines in
    feefine_engines/ with the lookup ports of feefine_kernel.domain.sources.
    This is the only layer that performs lookups or reads the clock.

Architecture position:
    Services -- orchestration over engines + kernel.

    Dependency direction (enforced by tests/architecture/test_layer_boundaries.py):
        feefine_services/ -> feefine_engines/  (allowed)
        feefine_services/ -> feefine_kernel/   (allowed)
        feefine_engines/  -> feefine_services/ (FORBIDDEN)
        feefine_kernel/   -> feefine_services/ (FORBIDDEN)
"""

from feefine_services.bootstrap import FeeFineServices, build_services
from feefine_services.refund_check_service import RefundCheckService
from feefine_services.refund_report_service import (
    RefundReportService,
    parse_report_date,
)

__all__ = [
    "FeeFineServices",
    "RefundCheckService",
    "RefundReportService",
    "build_services",
    "parse_report_date",
]
