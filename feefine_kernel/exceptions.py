"""
Typed Exception Hierarchy for the Fee/Fine Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers map fee/fine failures to very different outcomes: a malformed
request is rejected back to the user, while a report that would silently
miss rows must surface as an internal fault.  Matching on message text is
fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FeeFineError (base)
    |
    +-- ValidationError                 -> request rejected, nothing processed
    |   +-- MissingParameterError
    |   +-- InvalidDateError
    |   +-- InvalidDateRangeError
    |   +-- InvalidTimezoneError
    |   +-- InvalidAmountError
    |   +-- AmountNotPositiveError
    |
    +-- IntegrityFault                  -> whole request fails, internal fault
        +-- ReportAccountMissingError
        +-- ReportActionMissingError

Two failure kinds are deliberately NOT exceptions:

    - A missing account during an eligibility check degrades to a denied
      result with zero refundable (see feefine_services.refund_check_service).
    - A refund larger than its attributable pool is attributed best-effort
      and logged (see feefine_engines.attribution).

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                    | When Raised
------------|-------------------------|------------------------------------------
Validation  | MISSING_PARAMETER       | Required request parameter absent
            | INVALID_DATE            | Parameter is not a YYYY-MM-DD date
            | INVALID_DATE_RANGE      | Start date after end date
            | INVALID_TIMEZONE        | Caller timezone is not an IANA zone
            | INVALID_AMOUNT          | Requested amount is not numeric
            | AMOUNT_NOT_POSITIVE     | Requested amount <= 0
------------|-------------------------|------------------------------------------
Integrity   | REPORT_ACCOUNT_MISSING  | Refund in range references a deleted account
            | REPORT_ACTION_MISSING   | Refund in range absent from account history

===============================================================================
"""

from __future__ import annotations


class FeeFineError(Exception):
    """
    Base exception for all fee/fine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FEEFINE_ERROR"


# Validation exceptions


class ValidationError(FeeFineError):
    """User input is malformed; the request is rejected before processing."""

    code: str = "VALIDATION_ERROR"


class MissingParameterError(ValidationError):
    """A required request parameter was not supplied."""

    code: str = "MISSING_PARAMETER"

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Required parameter is missing: {parameter}")


class InvalidDateError(ValidationError):
    """A date parameter could not be parsed as a calendar date."""

    code: str = "INVALID_DATE"

    def __init__(self, parameter: str, value: object):
        self.parameter = parameter
        self.value = str(value)
        super().__init__(f"Invalid date for {parameter}: {value!r}")


class InvalidDateRangeError(ValidationError):
    """The start of a date range is after its end."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: str, end_date: str):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Start date {start_date} is after end date {end_date}"
        )


class InvalidTimezoneError(ValidationError):
    """The caller supplied a timezone identifier that does not exist."""

    code: str = "INVALID_TIMEZONE"

    def __init__(self, timezone: str):
        self.timezone = timezone
        super().__init__(f"Unknown timezone: {timezone!r}")


class InvalidAmountError(ValidationError):
    """The requested amount is not a finite number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, value: object):
        self.value = str(value)
        super().__init__("Invalid amount entered")


class AmountNotPositiveError(ValidationError):
    """The requested amount is zero or negative."""

    code: str = "AMOUNT_NOT_POSITIVE"

    def __init__(self, value: object):
        self.value = str(value)
        super().__init__("Amount must be positive")


# Integrity exceptions


class IntegrityFault(FeeFineError):
    """Stored data is inconsistent in a way that makes the result untrustworthy."""

    code: str = "INTEGRITY_FAULT"


class ReportAccountMissingError(IntegrityFault):
    """A refund action selected for a report references a missing account."""

    code: str = "REPORT_ACCOUNT_MISSING"

    def __init__(self, account_id: str, action_id: str | None = None):
        self.account_id = account_id
        self.action_id = action_id
        super().__init__(
            f"Account {account_id} referenced by refund action "
            f"{action_id or '<unknown>'} does not exist"
        )


class ReportActionMissingError(IntegrityFault):
    """A refund selected for a report is absent from its account's history."""

    code: str = "REPORT_ACTION_MISSING"

    def __init__(self, account_id: str, action_ids: list[str]):
        self.account_id = account_id
        self.action_ids = action_ids
        super().__init__(
            f"Refund actions {action_ids} are missing from the history "
            f"of account {account_id}"
        )
