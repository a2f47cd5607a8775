from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import NotFound
from app.db.models.banking import BankAccount, BankTransaction
from services.banking import service
from services.banking.schemas import BankAccountIn, BankAccountUpdate, BankTransactionIn, BankTransactionUpdate


def _txn(account, transaction_type="deposit", amount="100", day=date(2024, 5, 1)) -> BankTransactionIn:
    return BankTransactionIn(
        bank_account_id=account.id,
        amount=amount,
        transaction_type=transaction_type,
        transaction_date=day,
    )


class TestAccounts:
    def test_current_balance_starts_at_opening(self, session, firm):
        created = service.create_bank_account(
            session, firm.id, BankAccountIn(display_name="Savings", opening_balance="2500")
        )
        assert created["current_balance"] == Decimal("2500")

    def test_update_cannot_touch_balance(self, session, firm, make_bank):
        bank = make_bank("1000")
        updated = service.update_bank_account(
            session, firm.id, bank.id, BankAccountUpdate(display_name="Renamed", is_active=False)
        )
        assert updated["display_name"] == "Renamed"
        assert updated["is_active"] is False
        assert updated["current_balance"] == Decimal("1000")

    def test_list_active_only(self, session, firm, make_bank):
        make_bank(display_name="Open")
        make_bank(display_name="Closed", is_active=False)
        names = [a["display_name"] for a in service.list_bank_accounts(session, firm.id, is_active=True)]
        assert names == ["Open"]

    def test_delete_takes_transactions_along(self, session, firm, make_bank):
        bank = make_bank("1000")
        service.create_bank_transaction(session, firm.id, _txn(bank))
        service.create_bank_transaction(session, firm.id, _txn(bank, "charge", "5"))

        assert service.delete_bank_account(session, firm.id, bank.id) == 2
        assert session.query(BankAccount).count() == 0
        assert session.query(BankTransaction).count() == 0

    def test_delete_missing(self, session, firm):
        with pytest.raises(NotFound):
            service.delete_bank_account(session, firm.id, "ghost")


class TestTransactions:
    @pytest.mark.parametrize(
        "transaction_type,expected",
        [
            ("deposit", "1100"),
            ("interest", "1100"),
            ("receipt", "1100"),
            ("payment", "1100"),
            ("withdrawal", "900"),
            ("transfer", "900"),
            ("charge", "900"),
        ],
    )
    def test_sign_by_type(self, session, firm, make_bank, transaction_type, expected):
        bank = make_bank("1000")
        service.create_bank_transaction(session, firm.id, _txn(bank, transaction_type))
        session.refresh(bank)
        assert bank.current_balance == Decimal(expected)

    def test_delete_reverses(self, session, firm, make_bank):
        bank = make_bank("1000")
        txn = service.create_bank_transaction(session, firm.id, _txn(bank, "withdrawal", "300"))
        service.delete_bank_transaction(session, firm.id, txn["id"])
        session.refresh(bank)
        assert bank.current_balance == Decimal("1000")
        assert session.query(BankTransaction).count() == 0

    def test_update_moves_effect_to_new_amount(self, session, firm, make_bank):
        bank = make_bank("1000")
        txn = service.create_bank_transaction(session, firm.id, _txn(bank, "withdrawal", "300"))
        service.update_bank_transaction(session, firm.id, txn["id"], BankTransactionUpdate(amount="100"))
        session.refresh(bank)
        assert bank.current_balance == Decimal("900")

    def test_update_type_flips_sign(self, session, firm, make_bank):
        bank = make_bank("1000")
        txn = service.create_bank_transaction(session, firm.id, _txn(bank, "withdrawal", "300"))
        service.update_bank_transaction(
            session, firm.id, txn["id"], BankTransactionUpdate(transaction_type="deposit")
        )
        session.refresh(bank)
        assert bank.current_balance == Decimal("1300")

    def test_update_moves_effect_between_accounts(self, session, firm, make_bank):
        first = make_bank("1000", display_name="First")
        second = make_bank("500", display_name="Second")
        txn = service.create_bank_transaction(session, firm.id, _txn(first, "deposit", "200"))
        updated = service.update_bank_transaction(
            session, firm.id, txn["id"], BankTransactionUpdate(bank_account_id=second.id, description="moved")
        )
        session.refresh(first)
        session.refresh(second)
        assert (first.current_balance, second.current_balance) == (Decimal("1000"), Decimal("700"))
        assert updated["description"] == "moved"

    def test_update_to_unknown_account_changes_nothing(self, session, firm, make_bank):
        bank = make_bank("1000")
        txn = service.create_bank_transaction(session, firm.id, _txn(bank, "deposit", "200"))
        with pytest.raises(NotFound, match="Bank account not found"):
            service.update_bank_transaction(
                session, firm.id, txn["id"], BankTransactionUpdate(bank_account_id="ghost", amount="50")
            )
        session.refresh(bank)
        assert bank.current_balance == Decimal("1200")

    def test_update_missing_transaction(self, session, firm):
        with pytest.raises(NotFound, match="Transaction not found"):
            service.update_bank_transaction(session, firm.id, "ghost", BankTransactionUpdate(amount="1"))

    def test_unknown_account(self, session, firm, make_bank):
        bank = make_bank()
        payload = _txn(bank)
        payload.bank_account_id = "ghost"
        with pytest.raises(NotFound, match="Bank account not found"):
            service.create_bank_transaction(session, firm.id, payload)
        assert session.query(BankTransaction).count() == 0

    def test_filters_combine(self, session, firm, make_bank):
        first = make_bank(display_name="First")
        second = make_bank(display_name="Second")
        service.create_bank_transaction(session, firm.id, _txn(first, "deposit", day=date(2024, 1, 10)))
        service.create_bank_transaction(session, firm.id, _txn(first, "charge", day=date(2024, 2, 10)))
        service.create_bank_transaction(session, firm.id, _txn(first, "deposit", day=date(2024, 3, 10)))
        service.create_bank_transaction(session, firm.id, _txn(second, "deposit", day=date(2024, 2, 11)))

        rows = service.list_bank_transactions(
            session,
            firm.id,
            bank_account_id=first.id,
            transaction_type="deposit",
            start_date=date(2024, 2, 1),
        )
        assert [r["transaction_date"] for r in rows] == [date(2024, 3, 10)]
