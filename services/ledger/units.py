"""Conversion between primary/secondary unit quantities.

With a conversion rate ``r`` (secondary units per primary unit), a stock of
``p`` primary and ``s`` secondary units is the composite quantity
``p * r + s`` measured in secondary units.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Any


class InvalidConversionRate(ValueError):
    pass


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _checked_rate(rate: Any) -> Decimal:
    r = to_decimal(rate)
    if r <= 0:
        raise InvalidConversionRate(f"conversion rate must be positive, got {rate!r}")
    return r


def to_composite(primary: Any, secondary: Any, rate: Any) -> Decimal:
    r = _checked_rate(rate)
    return to_decimal(primary) * r + to_decimal(secondary)


def from_composite(total: Any, rate: Any) -> tuple[Decimal, Decimal]:
    """Split a composite quantity into ``(primary, secondary)``.

    ``primary`` is floored and ``secondary`` is whatever remains, so
    ``primary * rate + secondary == total`` holds for negative totals as well.
    """
    r = _checked_rate(rate)
    t = to_decimal(total)
    primary = (t / r).to_integral_value(rounding=ROUND_FLOOR)
    return primary, t - primary * r


def has_secondary_unit(line: Any) -> bool:
    """True when a document line carries a usable secondary unit conversion."""
    if not getattr(line, "secondary_unit_id", None) or not getattr(line, "unit_conversion_id", None):
        return False
    try:
        return to_decimal(getattr(line, "conversion_rate", None)) > 0
    except ArithmeticError:
        return False
