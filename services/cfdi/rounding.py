"""Rounding and validation primitives for currency amounts."""

from __future__ import annotations

import math
import sys
from numbers import Real
from typing import TYPE_CHECKING

from services.cfdi.errors import CalculationException, InvalidInput, InvalidNumber

if TYPE_CHECKING:
    from services.cfdi.types import RateSet

# Nudge added before rounding so 3.145 (stored as 3.14499...) rounds up.
EPSILON = sys.float_info.epsilon


def _is_finite_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def round2(value: float) -> float:
    """
    Round to 2 decimal places, half up.

    Ties go toward positive infinity, matching ``floor(v + 0.5)``; Python's
    built-in ``round`` would round half to even instead.

    Args:
        value: Amount to round.

    Returns:
        The amount rounded to cents.

    Raises:
        CalculationException: With an InvalidNumber error for NaN, infinities,
            non-numeric input or values whose cents overflow a float.

    Example:
        >>> round2(3.14159)
        3.14
        >>> round2(3.145)
        3.15
    """
    if not _is_finite_number(value):
        raise CalculationException(InvalidNumber(details=f"value={value!r}"))

    cents = (value + EPSILON) * 100
    if not math.isfinite(cents):
        raise CalculationException(
            InvalidNumber("Value is too large to round", details=f"value={value!r}")
        )
    # floor(cents + 0.5) would round the addition itself above 2**52.
    whole = math.floor(cents)
    if cents - whole >= 0.5:
        whole += 1
    return whole / 100


def validate_positive(value: float, field_name: str = "value") -> None:
    """
    Check that ``value`` is a finite number greater than zero.

    Raises:
        CalculationException: With an InvalidInput error naming ``field_name``.
    """
    if not _is_finite_number(value):
        raise CalculationException(InvalidInput(field_name, "Must be a valid number"))
    if value <= 0:
        raise CalculationException(InvalidInput(field_name, "Must be greater than 0"))


def percentage_of(base: float, rate: float) -> float:
    """
    Return ``base * rate`` for a positive base and a rate in [0, 1].

    Raises:
        CalculationException: With an InvalidInput error otherwise.
    """
    validate_positive(base, "base")
    if not _is_finite_number(rate) or not 0 <= rate <= 1:
        raise CalculationException(InvalidInput("rate", "Percentage must be between 0 and 1"))
    return base * rate


def validate_rates(rates: RateSet) -> None:
    """Check every rate is a finite number in [0, 1]."""
    for name in ("vat_rate", "income_tax_rate", "vat_retention_fraction"):
        rate = getattr(rates, name)
        if not _is_finite_number(rate) or not 0 <= rate <= 1:
            raise CalculationException(
                InvalidInput(name, "Percentage must be between 0 and 1")
            )
