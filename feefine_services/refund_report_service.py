"""
feefine_services.refund_report_service -- Refund report for a date range.

Responsibility:
    Select every refund recorded within a calendar-day range (in the
    tenant's or caller's timezone) and produce one report row per refund,
    attributing each refund to the payments and transfers it refunds.

Architecture position:
    Services -- orchestration over engines + lookup ports.
    Composes LedgerReplayEngine, RefundAttributionEngine and
    RefundReportRowBuilder (pure engines) with LedgerSource,
    PatronDirectory, InventoryDirectory and TimezoneSource (ports).

Flow:
    1. Validate parameters (no data access before this succeeds).
    2. Resolve the timezone and turn the day range into UTC instants.
    3. Select refunds in range; fetch each referenced account and its
       history.  A missing account aborts the report.
    4. Replay and attribute each account concurrently (pure, per-account).
    5. Build rows in ascending refund time across all accounts.

Failure modes:
    - ValidationError subclasses for missing/malformed parameters.
    - ReportAccountMissingError when a selected refund references an account
      that no longer exists.
    - ReportActionMissingError when a selected refund is absent from its
      account's history.  No partial report is ever returned.

Usage:
    service = RefundReportService(
        ledger=FeeFineSelector(session),
        patrons=patron_directory,
        inventory=inventory_directory,
        timezone_source=tenant_locale,
        settings=get_active_config().report,
    )
    rows = service.generate_refund_report("2020-01-01", "2020-01-15")
"""

from __future__ import annotations

import contextvars
import re
import time
from collections import Counter
from collections.abc import Hashable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time, timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from feefine_config.schema import ReportSettings
from feefine_engines.attribution import RefundAttribution, RefundAttributionEngine
from feefine_engines.ledger_replay import LedgerReplayEngine
from feefine_engines.report_rows import RefundReportEntry, RefundReportRowBuilder
from feefine_kernel.domain.ledger import Account, FeeFineAction
from feefine_kernel.domain.sources import (
    InstanceRecord,
    InventoryDirectory,
    ItemRecord,
    LedgerSource,
    PatronDirectory,
    PatronRecord,
    TimezoneSource,
)
from feefine_kernel.exceptions import (
    FeeFineError,
    InvalidDateError,
    InvalidDateRangeError,
    InvalidTimezoneError,
    MissingParameterError,
    ReportAccountMissingError,
    ReportActionMissingError,
)
from feefine_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.refund_report")

FALLBACK_TIMEZONE = "UTC"

_REPORT_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_report_date(parameter: str, value: date | str | None) -> date:
    """Parse a ``YYYY-MM-DD`` report boundary.

    Raises:
        MissingParameterError: value is None or blank.
        InvalidDateError: value is not a calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingParameterError(parameter)
    if not isinstance(value, str):
        raise InvalidDateError(parameter, value)
    text = value.strip()
    if not _REPORT_DATE.fullmatch(text):
        raise InvalidDateError(parameter, value)
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as e:
        raise InvalidDateError(parameter, value) from e


def _load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(name) from e


def _action_keys(actions: Iterable[FeeFineAction]) -> list[Hashable]:
    """
    Identity of each action across separate source queries.

    Actions without an id are told apart by value plus the number of equal
    actions seen before them.  Equal actions share a timestamp, so both
    queries return them together and in the same relative order.
    """
    seen: Counter[FeeFineAction] = Counter()
    keys: list[Hashable] = []
    for action in actions:
        if action.id is not None:
            keys.append(("id", action.id))
        else:
            keys.append(("value", action, seen[action]))
            seen[action] += 1
    return keys


class _ReferenceLookups:
    """Per-call memo of patron, item and instance lookups."""

    def __init__(self, patrons: PatronDirectory, inventory: InventoryDirectory):
        self._patrons = patrons
        self._inventory = inventory
        self._patron_cache: dict[str, PatronRecord | None] = {}
        self._item_cache: dict[str, ItemRecord | None] = {}
        self._instance_cache: dict[str, InstanceRecord | None] = {}

    def patron(self, patron_id: str) -> PatronRecord | None:
        if patron_id not in self._patron_cache:
            patron = self._patrons.get_patron(patron_id)
            if patron is None:
                logger.warning("patron_not_found", extra={"patron_id": patron_id})
            self._patron_cache[patron_id] = patron
        return self._patron_cache[patron_id]

    def item_and_instance(
        self, item_id: str | None
    ) -> tuple[ItemRecord | None, InstanceRecord | None]:
        if not item_id:
            return None, None
        if item_id not in self._item_cache:
            item = self._inventory.get_item(item_id)
            if item is None:
                logger.warning("item_not_found", extra={"item_id": item_id})
            self._item_cache[item_id] = item
        item = self._item_cache[item_id]
        if item is None or not item.instance_id:
            return item, None

        instance_id = item.instance_id
        if instance_id not in self._instance_cache:
            instance = self._inventory.get_instance(instance_id)
            if instance is None:
                logger.warning("instance_not_found", extra={"instance_id": instance_id})
            self._instance_cache[instance_id] = instance
        return item, self._instance_cache[instance_id]


@dataclass(frozen=True)
class _AccountWork:
    """Everything one account contributes to the report, fetched up front."""

    account: Account
    actions: tuple[FeeFineAction, ...]
    selected: frozenset[Hashable]


class RefundReportService:
    """
    Generates refund reports.

    Contract:
        Report rows are derived entirely from the immutable ledger; running
        the report twice over the same data yields identical rows.
    Guarantees:
        - Rows are ordered by refund timestamp across all accounts; refunds
          with equal timestamps keep the ledger source's order.
        - Either every selected refund produces a row or the call raises.
    Non-goals:
        - Does not cache reference data between calls.
        - Does not retry or time out lookups; ports own that.
    """

    def __init__(
        self,
        ledger: LedgerSource,
        patrons: PatronDirectory,
        inventory: InventoryDirectory,
        timezone_source: TimezoneSource | None = None,
        settings: ReportSettings | None = None,
        replay_engine: LedgerReplayEngine | None = None,
        attribution_engine: RefundAttributionEngine | None = None,
    ):
        self._ledger = ledger
        self._patrons = patrons
        self._inventory = inventory
        self._timezone_source = timezone_source
        self._settings = settings or ReportSettings()
        self._replay_engine = replay_engine or LedgerReplayEngine()
        self._attribution_engine = attribution_engine or RefundAttributionEngine()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate_refund_report(
        self,
        start_date: date | str | None,
        end_date: date | str | None,
        timezone: str | None = None,
    ) -> list[RefundReportEntry]:
        """
        Build the refund report for ``[start_date, end_date]`` inclusive.

        Raises:
            MissingParameterError, InvalidDateError, InvalidDateRangeError,
            InvalidTimezoneError: request rejected, nothing fetched.
            ReportAccountMissingError: a refund in range references a
            deleted account.
        """
        start = parse_report_date("startDate", start_date)
        end = parse_report_date("endDate", end_date)
        if start > end:
            raise InvalidDateRangeError(start.isoformat(), end.isoformat())
        caller_zone = _load_zone(timezone) if timezone else None

        with LogContext.bind(correlation_id=str(uuid4()), operation="refund_report"):
            t0 = time.monotonic()
            logger.info(
                "refund_report_started",
                extra={"start_date": start.isoformat(), "end_date": end.isoformat()},
            )
            tz = caller_zone or self._resolve_tenant_zone()
            try:
                rows = self._generate(start, end, tz)
            except FeeFineError as e:
                logger.error(
                    "refund_report_failed",
                    extra={"error_code": e.code},
                    exc_info=True,
                )
                raise

            logger.info(
                "refund_report_completed",
                extra={
                    "row_count": len(rows),
                    "timezone": tz.key,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return rows

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_tenant_zone(self) -> ZoneInfo:
        name = None
        if self._timezone_source is not None:
            name = self._timezone_source.get_tenant_timezone()
        if name:
            try:
                return _load_zone(name)
            except InvalidTimezoneError:
                logger.warning("tenant_timezone_invalid", extra={"timezone": name})
        try:
            return _load_zone(self._settings.default_timezone)
        except InvalidTimezoneError:
            logger.warning(
                "default_timezone_invalid",
                extra={"timezone": self._settings.default_timezone},
            )
            return ZoneInfo(FALLBACK_TIMEZONE)

    def _generate(self, start: date, end: date, tz: ZoneInfo) -> list[RefundReportEntry]:
        window_start = datetime.combine(start, dt_time.min, tzinfo=tz)
        window_end = datetime.combine(end + timedelta(days=1), dt_time.min, tzinfo=tz)

        refunds = list(self._ledger.list_refund_actions(window_start, window_end))
        if not refunds:
            return []

        keys = _action_keys(refunds)
        work = self._fetch(refunds, keys)
        attributed = self._attribute_all(work)

        ordered = sorted(
            enumerate(refunds), key=lambda pair: (pair[1].timestamp, pair[0])
        )
        builder = RefundReportRowBuilder(tz)
        lookups = _ReferenceLookups(self._patrons, self._inventory)
        rows: list[RefundReportEntry] = []
        for index, _ in ordered:
            account, attribution = attributed[keys[index]]
            item, instance = lookups.item_and_instance(account.item_id)
            rows.append(
                builder.build(
                    account,
                    attribution,
                    patron=lookups.patron(account.patron_id),
                    item=item,
                    instance=instance,
                )
            )
        return rows

    def _fetch(
        self, refunds: Sequence[FeeFineAction], keys: Sequence[Hashable]
    ) -> list[_AccountWork]:
        """Fetch each referenced account and its full history, in first-seen order."""
        by_account: dict[str, list[tuple[FeeFineAction, Hashable]]] = {}
        for refund, key in zip(refunds, keys):
            by_account.setdefault(refund.account_id, []).append((refund, key))

        work: list[_AccountWork] = []
        for account_id, selected in by_account.items():
            account = self._ledger.get_account(account_id)
            if account is None:
                raise ReportAccountMissingError(account_id, selected[0][0].id)
            work.append(
                _AccountWork(
                    account=account,
                    actions=tuple(self._ledger.list_actions(account_id)),
                    selected=frozenset(key for _, key in selected),
                )
            )
        return work

    def _attribute_all(
        self, work: list[_AccountWork]
    ) -> dict[Hashable, tuple[Account, RefundAttribution]]:
        """Replay and attribute every account, concurrently when configured."""
        workers = min(self._settings.max_workers, len(work))
        if workers <= 1:
            per_account = [self._attribute_account(w) for w in work]
        else:
            # Workers log under a copy of the caller's LogContext
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [
                    pool.submit(contextvars.copy_context().run, self._attribute_account, w)
                    for w in work
                ]
                per_account = [future.result() for future in futures]

        merged: dict[Hashable, tuple[Account, RefundAttribution]] = {}
        for w, attributions in zip(work, per_account):
            for key, attribution in attributions.items():
                merged[key] = (w.account, attribution)
        return merged

    def _attribute_account(self, work: _AccountWork) -> dict[Hashable, RefundAttribution]:
        replay = self._replay_engine.replay(
            account_id=work.account.id,
            actions=work.actions,
            billed_amount=work.account.amount,
        )
        attributions = self._attribution_engine.attribute(replay=replay)

        keys = _action_keys(a.action for a in attributions)
        selected = {
            key: attribution
            for key, attribution in zip(keys, attributions)
            if key in work.selected
        }
        missing = work.selected - selected.keys()
        if missing:
            raise ReportActionMissingError(
                work.account.id, sorted(str(key[1]) for key in missing)
            )
        return selected
