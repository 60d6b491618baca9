"""
Values -- Immutable monetary value object for the fee/fine ledger.

Responsibility:
    Provides Money, the exact two-decimal-place amount used for every charge,
    payment, transfer, refund and balance figure.  Replaces raw Decimal/float
    wherever a monetary figure appears in domain or engine logic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain and engine module.  No outward dependencies.

Invariants enforced:
    - Amounts are always Decimal quantized to 2 places (never float).
    - Construction rounds with ROUND_HALF_EVEN so repeated partial settlements
      carry no systematic bias.
    - Subtraction never silently produces a negative amount; callers choose
      between rejecting (``-``) and clamping (``clamped_sub``).

Failure modes:
    - ValueError on construction from non-numeric or non-finite input.
    - ValueError when ``-`` would produce a negative amount.
    - TypeError (via NotImplemented) when mixing Money with other types.

Audit relevance:
    Every amount rendered in a refund report or eligibility response goes
    through ``str(Money)``, which is fixed two-decimal and locale independent,
    so displayed figures match stored figures bit for bit.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

DECIMAL_PLACES = 2
ROUNDING = ROUND_HALF_EVEN

_QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)


def _to_decimal(value: Decimal | str | int | float) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    else:
        raise ValueError(f"Invalid amount: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


@dataclass(frozen=True, slots=True, order=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Holds a Decimal amount rounded to two decimal places with
        ROUND_HALF_EVEN.  Currency is implicit (single-currency ledger) and is
        never rendered.

    Guarantees:
        - Immutable, hashable and ordered by amount
        - amount is always a finite Decimal with exponent -2
        - Arithmetic operates on the rounded representation

    Non-goals:
        - Does NOT carry a currency code or perform conversion
        - Does NOT format with locale-specific separators or symbols
    """

    amount: Decimal

    def __post_init__(self) -> None:
        try:
            rounded = _to_decimal(self.amount).quantize(_QUANTUM, rounding=ROUNDING)
        except InvalidOperation as e:
            raise ValueError(f"Amount out of range: {self.amount!r}") from e
        if rounded.is_zero():
            # -0.004 rounds to -0.00; keep a single zero representation
            rounded = rounded.copy_abs()
        object.__setattr__(self, "amount", rounded)

    @classmethod
    def of(cls, value: Decimal | str | int | float) -> Money:
        """
        Factory method for creating Money from a raw numeric value.

        Floats are converted through ``str()`` so ``3.1`` becomes ``3.10``
        rather than its binary approximation.

        Raises:
            ValueError: If value is not a finite number.
        """
        return cls(amount=_to_decimal(value))

    @classmethod
    def zero(cls) -> Money:
        """Create a zero amount."""
        return cls(amount=Decimal("0"))

    @classmethod
    def total(cls, amounts: Iterable[Money]) -> Money:
        """Sum an iterable of Money, zero when empty."""
        result = cls.zero()
        for amount in amounts:
            result = result + amount
        return result

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def clamped_sub(self, other: Money) -> Money:
        """Subtract, flooring the result at zero."""
        if not isinstance(other, Money):
            raise TypeError(f"Cannot subtract {type(other).__name__} from Money")
        if other.amount >= self.amount:
            return Money.zero()
        return Money(amount=self.amount - other.amount)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(amount=self.amount + other.amount)

    def __sub__(self, other: Money) -> Money:
        """Subtract two Money values.  A negative result is rejected."""
        if not isinstance(other, Money):
            return NotImplemented
        difference = self.amount - other.amount
        if difference < 0:
            raise ValueError(
                f"Subtraction would produce a negative amount: {self} - {other}"
            )
        return Money(amount=difference)

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        """Divide by a scalar, rounding the quotient half-even."""
        if isinstance(divisor, (int, str)) and not isinstance(divisor, bool):
            divisor = Decimal(str(divisor))
        if not isinstance(divisor, Decimal):
            return NotImplemented
        return Money(amount=self.amount / divisor)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"

    def __repr__(self) -> str:
        return f"Money({str(self)!r})"
