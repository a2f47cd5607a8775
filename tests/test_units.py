from decimal import Decimal
from types import SimpleNamespace

import pytest

from services.ledger.units import (
    InvalidConversionRate,
    from_composite,
    has_secondary_unit,
    to_composite,
    to_decimal,
)


class TestComposite:
    def test_to_composite(self):
        assert to_composite(10, 5, 12) == Decimal("125")

    def test_from_composite_splits_with_floor(self):
        assert from_composite(125, 12) == (Decimal("10"), Decimal("5"))

    def test_from_composite_negative_total_keeps_remainder_non_negative(self):
        primary, secondary = from_composite(-5, 12)
        assert primary == Decimal("-1")
        assert secondary == Decimal("7")
        assert primary * 12 + secondary == Decimal("-5")

    def test_fractional_rate(self):
        primary, secondary = from_composite(Decimal("7.5"), Decimal("2.5"))
        assert (primary, secondary) == (Decimal("3"), Decimal("0"))

    @pytest.mark.parametrize("rate", [0, -3, None])
    def test_non_positive_rate_rejected(self, rate):
        with pytest.raises(InvalidConversionRate):
            to_composite(1, 1, rate)
        with pytest.raises(InvalidConversionRate):
            from_composite(10, rate)

    def test_invalid_rate_is_a_value_error(self):
        assert issubclass(InvalidConversionRate, ValueError)


class TestToDecimal:
    def test_blank_values_are_zero(self):
        assert to_decimal(None) == 0
        assert to_decimal("") == 0

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")


class TestHasSecondaryUnit:
    def _line(self, **kw):
        values = dict(secondary_unit_id="unit-pcs", unit_conversion_id="conv-1", conversion_rate=Decimal("12"))
        values.update(kw)
        return SimpleNamespace(**values)

    def test_complete_line(self):
        assert has_secondary_unit(self._line())

    @pytest.mark.parametrize(
        "override",
        [
            {"secondary_unit_id": None},
            {"unit_conversion_id": ""},
            {"conversion_rate": 0},
            {"conversion_rate": None},
        ],
    )
    def test_incomplete_line(self, override):
        assert not has_secondary_unit(self._line(**override))
