import logging
from decimal import Decimal

import pytest

from app.db.models.document import DocumentItem
from app.db.repositories import ItemRepository
from services.ledger.stock import (
    STOCK_AFFECTING_TYPES,
    apply_stock_delta,
    apply_stock_deltas,
    stock_sign,
)


def _line(item, qty="10", **kw) -> DocumentItem:
    return DocumentItem(item_id=item.id, item_name=item.name, primary_quantity=Decimal(qty), **kw)


def _composite_line(item, primary="2", secondary="7", rate="12") -> DocumentItem:
    return DocumentItem(
        item_id=item.id,
        primary_quantity=Decimal(primary),
        secondary_quantity=Decimal(secondary),
        secondary_unit_id="unit-pcs",
        unit_conversion_id="conv-1",
        conversion_rate=Decimal(rate),
    )


class TestSign:
    @pytest.mark.parametrize("doc_type", ["sale", "sale_invoice", "purchase_return", "delivery_challan"])
    def test_outflows(self, doc_type):
        assert stock_sign(doc_type) == -1
        assert stock_sign(doc_type, reverse=True) == 1

    @pytest.mark.parametrize("doc_type", ["purchase_invoice", "sale_return"])
    def test_inflows(self, doc_type):
        assert stock_sign(doc_type) == 1
        assert stock_sign(doc_type, reverse=True) == -1

    def test_orders_and_quotations_do_not_move_stock(self):
        for doc_type in ("sale_order", "sale_quotation", "purchase_order"):
            assert doc_type not in STOCK_AFFECTING_TYPES


class TestPrimaryOnly:
    def test_sale_decreases(self, session, firm, make_item):
        item = make_item()
        change = apply_stock_delta(session, firm.id, "sale_invoice", _line(item))
        assert item.primary_quantity == Decimal("40")
        assert change.before_primary == Decimal("50")
        assert change.after_primary == Decimal("40")

    def test_purchase_increases(self, session, firm, make_item):
        item = make_item()
        apply_stock_delta(session, firm.id, "purchase_invoice", _line(item, "5"))
        assert item.primary_quantity == Decimal("55")

    def test_forward_then_reverse_restores(self, session, firm, make_item):
        item = make_item()
        line = _line(item, "13")
        apply_stock_delta(session, firm.id, "delivery_challan", line)
        apply_stock_delta(session, firm.id, "delivery_challan", line, reverse=True)
        assert item.primary_quantity == Decimal("50")

    def test_stock_can_go_negative(self, session, firm, make_item):
        item = make_item(primary_quantity=Decimal("3"))
        apply_stock_delta(session, firm.id, "sale_invoice", _line(item, "5"))
        assert item.primary_quantity == Decimal("-2")

    def test_non_stock_type_is_noop(self, session, firm, make_item):
        item = make_item()
        assert apply_stock_delta(session, firm.id, "sale_order", _line(item)) is None
        assert item.primary_quantity == Decimal("50")

    def test_missing_item_is_skipped(self, session, firm, caplog):
        line = DocumentItem(item_id="no-such-item", primary_quantity=Decimal("1"))
        with caplog.at_level(logging.WARNING, logger="billing.stock"):
            assert apply_stock_delta(session, firm.id, "sale_invoice", line) is None
        assert "no-such-item" in caplog.text

    def test_item_of_another_firm_is_not_touched(self, session, firm, make_item):
        item = make_item()
        assert apply_stock_delta(session, "other-firm", "sale_invoice", _line(item)) is None
        assert item.primary_quantity == Decimal("50")


class TestComposite:
    def test_sale_in_mixed_units(self, session, firm, make_item):
        # 10 boxes + 5 pieces at 12 pieces per box = 125 pieces
        item = make_item(primary_quantity=Decimal("10"), secondary_quantity=Decimal("5"))
        apply_stock_delta(session, firm.id, "sale_invoice", _composite_line(item))
        # 125 - 31 = 94 = 7 boxes + 10 pieces
        assert item.primary_quantity == Decimal("7")
        assert item.secondary_quantity == Decimal("10")

    def test_composite_total_is_conserved_by_round_trips(self, session, firm, make_item):
        item = make_item(primary_quantity=Decimal("10"), secondary_quantity=Decimal("5"))
        lines = [_composite_line(item, "1", "11"), _composite_line(item, "0", "30"), _composite_line(item, "4", "0")]
        for line in lines:
            apply_stock_delta(session, firm.id, "purchase_invoice", line)
        for line in reversed(lines):
            apply_stock_delta(session, firm.id, "purchase_invoice", line, reverse=True)
        assert item.primary_quantity * 12 + item.secondary_quantity == Decimal("125")

    def test_missing_secondary_quantity_counts_as_zero(self, session, firm, make_item):
        item = make_item(primary_quantity=Decimal("2"), secondary_quantity=None)
        line = _composite_line(item, "1", "0")
        line.secondary_quantity = None
        apply_stock_delta(session, firm.id, "sale_invoice", line)
        assert (item.primary_quantity, item.secondary_quantity) == (Decimal("1"), Decimal("0"))

    def test_zero_rate_falls_back_to_primary(self, session, firm, make_item):
        item = make_item()
        line = _composite_line(item, "4", "3", rate="0")
        apply_stock_delta(session, firm.id, "sale_invoice", line)
        assert item.primary_quantity == Decimal("46")
        assert item.secondary_quantity == Decimal("0")


class TestBatch:
    def test_one_bad_line_does_not_stop_the_rest(self, session, firm, make_item, caplog):
        good = make_item(name="Good")
        other = make_item(name="Other")
        bad = DocumentItem(item_id=good.id, primary_quantity=Decimal("1"))
        bad.primary_quantity = "not-a-number"

        with caplog.at_level(logging.ERROR, logger="billing.stock"):
            changes = apply_stock_deltas(
                session, firm.id, "sale_invoice", [_line(good, "5"), bad, _line(other, "2")]
            )

        assert [c.item_id for c in changes] == [good.id, other.id]
        assert good.primary_quantity == Decimal("45")
        assert other.primary_quantity == Decimal("48")
        assert "Error updating stock" in caplog.text

    def test_write_failure_is_not_swallowed(self, session, firm, make_item, monkeypatch):
        first = make_item(name="First")
        second = make_item(name="Second")
        calls = []

        def failing_save(self, item, primary, secondary=None):
            calls.append(item.id)
            raise RuntimeError("disk full")

        monkeypatch.setattr(ItemRepository, "save_quantities", failing_save)
        with pytest.raises(RuntimeError, match="disk full"):
            apply_stock_deltas(session, firm.id, "sale_invoice", [_line(first, "5"), _line(second, "2")])
        assert calls == [first.id]

    def test_non_stock_document_returns_nothing(self, session, firm, make_item):
        item = make_item()
        assert apply_stock_deltas(session, firm.id, "sale_quotation", [_line(item)]) == []
