from decimal import Decimal
from types import SimpleNamespace

import pytest

from services.ledger.bank import (
    adjust_bank_balance,
    apply_bank_delta,
    apply_payment_to_bank,
    document_bank_delta,
)


def _doc(bank_id="bank-1", doc_type="sale_invoice", paid="400", payment_type="bank"):
    return SimpleNamespace(
        document_type=doc_type,
        payment_type=payment_type,
        bank_id=bank_id,
        paid_amount=Decimal(paid),
    )


class TestDocumentDelta:
    @pytest.mark.parametrize("doc_type", ["sale", "sale_invoice", "sale_order", "sale_return"])
    def test_sale_family_adds(self, doc_type):
        assert document_bank_delta(_doc(doc_type=doc_type)) == Decimal("400")

    @pytest.mark.parametrize("doc_type", ["purchase_invoice", "purchase_return", "purchase_order"])
    def test_purchase_family_subtracts(self, doc_type):
        assert document_bank_delta(_doc(doc_type=doc_type)) == Decimal("-400")

    def test_reverse_flips(self):
        assert document_bank_delta(_doc(), reverse=True) == Decimal("-400")

    def test_other_types_do_nothing(self):
        assert document_bank_delta(_doc(doc_type="delivery_challan")) == 0

    @pytest.mark.parametrize(
        "overrides",
        [{"payment_type": "cash"}, {"payment_type": "upi"}, {"bank_id": None}, {"paid": "0"}],
    )
    def test_not_bank_settled(self, overrides):
        assert document_bank_delta(_doc(**overrides)) == 0


class TestApply:
    def test_sale_paid_by_bank(self, session, firm, make_bank):
        bank = make_bank("1000")
        apply_bank_delta(session, firm.id, _doc(bank_id=bank.id))
        assert bank.current_balance == Decimal("1400")

    def test_purchase_may_overdraw(self, session, firm, make_bank):
        bank = make_bank("100")
        apply_bank_delta(session, firm.id, _doc(bank_id=bank.id, doc_type="purchase_invoice"))
        assert bank.current_balance == Decimal("-300")

    def test_missing_account_is_skipped(self, session, firm):
        assert apply_bank_delta(session, firm.id, _doc(bank_id="ghost")) is None
        assert adjust_bank_balance(session, firm.id, "ghost", Decimal("5")) is None

    def test_payment_directions(self, session, firm, make_bank):
        bank = make_bank("1000")
        payment_in = SimpleNamespace(payment_type="bank", bank_account_id=bank.id, direction="in", amount=Decimal("250"))
        payment_out = SimpleNamespace(payment_type="bank", bank_account_id=bank.id, direction="out", amount=Decimal("100"))
        apply_payment_to_bank(session, firm.id, payment_in)
        apply_payment_to_bank(session, firm.id, payment_out)
        assert bank.current_balance == Decimal("1150")

    def test_cash_payment_does_not_touch_bank(self, session, firm, make_bank):
        bank = make_bank("1000")
        payment = SimpleNamespace(payment_type="cash", bank_account_id=bank.id, direction="in", amount=Decimal("250"))
        assert apply_payment_to_bank(session, firm.id, payment) is None
        assert bank.current_balance == Decimal("1000")
