"""
Module: feefine_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    fee/fine calculation engines.  This is the canonical import surface for
    feefine_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import feefine_kernel domain types, exceptions and logging.
    MUST NOT import feefine_services or feefine_config.

Invariants enforced:
    - Purity: engines never read the clock or perform lookups; every input
      is an explicit parameter.
    - Decimal-only arithmetic through feefine_kernel.domain.values.Money.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``feefine_engines.tracer``), emitting FEEFINE_ENGINE_TRACE records.
"""

from feefine_engines.attribution import (
    MULTIPLE_LABELS,
    RefundAttribution,
    RefundAttributionEngine,
    collapse_labels,
)
from feefine_engines.eligibility import (
    RefundEligibilityCalculator,
    RefundEligibilityResult,
    RefundErrorKind,
    parse_requested_amount,
)
from feefine_engines.ledger_replay import (
    LedgerReplay,
    LedgerReplayEngine,
    ReplayedAction,
)
from feefine_engines.report_rows import (
    RefundReportEntry,
    RefundReportRowBuilder,
    format_report_date,
)
from feefine_engines.tracer import traced_engine

__all__ = [
    "LedgerReplay",
    "LedgerReplayEngine",
    "MULTIPLE_LABELS",
    "RefundAttribution",
    "RefundAttributionEngine",
    "RefundEligibilityCalculator",
    "RefundEligibilityResult",
    "RefundErrorKind",
    "RefundReportEntry",
    "RefundReportRowBuilder",
    "ReplayedAction",
    "collapse_labels",
    "format_report_date",
    "parse_requested_amount",
    "traced_engine",
]
