"""Decimal helpers for currency amounts and percentages."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round2(value: Decimal) -> Decimal:
    """Round to cents, halves away from zero (ROUND_HALF_UP on Decimal)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part`` as a percentage of ``whole``, rounded to cents.

    A zero (or negative) ``whole`` yields 0 instead of raising.
    """
    if whole <= 0:
        return round2(ZERO)
    return round2(HUNDRED * part / whole)
