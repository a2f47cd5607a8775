from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.db.models.banking import BankAccount, BankTransaction
from app.db.repositories import BankAccountRepository, BankTransactionRepository
from app.db.serialize import row_to_dict
from app.db.session import transaction
from app.events.bus import enqueue_sync
from services.banking.schemas import BankAccountIn, BankAccountUpdate, BankTransactionIn, BankTransactionUpdate
from services.ledger.bank import adjust_bank_balance
from services.ledger.units import to_decimal

logger = logging.getLogger("billing.banking")

# Transaction types that take money out of the account; every other type adds.
OUTFLOW_TYPES = frozenset({"withdrawal", "transfer", "charge"})


def transaction_delta(transaction_type: str, amount: Any) -> Decimal:
    amount = to_decimal(amount)
    return -amount if transaction_type in OUTFLOW_TYPES else amount


# ---- Accounts ----
def list_bank_accounts(db: Session, firm_id: str, *, is_active: bool | None = None) -> list[dict[str, Any]]:
    return [row_to_dict(a) for a in BankAccountRepository(db, firm_id).search(is_active=is_active)]


def get_bank_account(db: Session, firm_id: str, account_id: str) -> dict[str, Any]:
    account = BankAccountRepository(db, firm_id).get(account_id)
    if account is None:
        raise NotFound("Bank account not found")
    return row_to_dict(account)


def create_bank_account(db: Session, firm_id: str, payload: BankAccountIn) -> dict[str, Any]:
    fields = payload.model_dump()
    with transaction(db):
        account = BankAccountRepository(db, firm_id).add(
            BankAccount(**fields, current_balance=fields["opening_balance"])
        )
        enqueue_sync(db, firm_id, "bank_accounts")
    logger.info("created bank account %s for firm %s", account.id, firm_id)
    return row_to_dict(account)


def update_bank_account(db: Session, firm_id: str, account_id: str, payload: BankAccountUpdate) -> dict[str, Any]:
    with transaction(db):
        account = BankAccountRepository(db, firm_id).get(account_id)
        if account is None:
            raise NotFound("Bank account not found")
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(account, key, value)
        db.flush()
        enqueue_sync(db, firm_id, "bank_accounts")
    return row_to_dict(account)


def delete_bank_account(db: Session, firm_id: str, account_id: str) -> int:
    """Delete an account and its transactions; returns how many transactions went with it."""
    accounts = BankAccountRepository(db, firm_id)
    transactions = BankTransactionRepository(db, firm_id)

    with transaction(db):
        account = accounts.get(account_id)
        if account is None:
            raise NotFound("Bank account not found")
        rows = transactions.for_account(account.id)
        for row in rows:
            db.delete(row)
        accounts.delete(account)

    logger.info("deleted bank account %s and %d transactions for firm %s", account_id, len(rows), firm_id)
    return len(rows)


# ---- Transactions ----
def list_bank_transactions(
    db: Session,
    firm_id: str,
    *,
    bank_account_id: str | None = None,
    transaction_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[dict[str, Any]]:
    rows = BankTransactionRepository(db, firm_id).search(
        bank_account_id=bank_account_id,
        transaction_type=transaction_type,
        start_date=start_date,
        end_date=end_date,
    )
    return [row_to_dict(r) for r in rows]


def get_bank_transaction(db: Session, firm_id: str, transaction_id: str) -> dict[str, Any]:
    row = BankTransactionRepository(db, firm_id).get(transaction_id)
    if row is None:
        raise NotFound("Transaction not found")
    return row_to_dict(row)


def create_bank_transaction(db: Session, firm_id: str, payload: BankTransactionIn) -> dict[str, Any]:
    with transaction(db):
        account = BankAccountRepository(db, firm_id).get(payload.bank_account_id)
        if account is None:
            raise NotFound("Bank account not found")
        row = BankTransactionRepository(db, firm_id).add(BankTransaction(**payload.model_dump()))
        adjust_bank_balance(db, firm_id, account.id, transaction_delta(row.transaction_type, row.amount))
        enqueue_sync(db, firm_id, "bank_transactions")

    logger.info("recorded %s of %s on bank account %s", row.transaction_type, row.amount, row.bank_account_id)
    return row_to_dict(row)


def update_bank_transaction(
    db: Session,
    firm_id: str,
    transaction_id: str,
    payload: BankTransactionUpdate,
) -> dict[str, Any]:
    """Edit a transaction, moving its effect from the old account/amount to the new one."""
    accounts = BankAccountRepository(db, firm_id)

    with transaction(db):
        row = BankTransactionRepository(db, firm_id).get(transaction_id)
        if row is None:
            raise NotFound("Transaction not found")
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        target_id = changes.get("bank_account_id", row.bank_account_id)
        if accounts.get(target_id) is None:
            raise NotFound("Bank account not found")

        if accounts.get(row.bank_account_id) is not None:
            adjust_bank_balance(db, firm_id, row.bank_account_id, -transaction_delta(row.transaction_type, row.amount))
        for key, value in changes.items():
            setattr(row, key, value)
        db.flush()
        adjust_bank_balance(db, firm_id, row.bank_account_id, transaction_delta(row.transaction_type, row.amount))
        enqueue_sync(db, firm_id, "bank_transactions")

    logger.info("updated bank transaction %s for firm %s", row.id, firm_id)
    return row_to_dict(row)


def delete_bank_transaction(db: Session, firm_id: str, transaction_id: str) -> None:
    transactions = BankTransactionRepository(db, firm_id)

    with transaction(db):
        row = transactions.get(transaction_id)
        if row is None:
            raise NotFound("Transaction not found")
        account = BankAccountRepository(db, firm_id).get(row.bank_account_id)
        if account is None:
            raise NotFound("Associated bank account not found")
        adjust_bank_balance(db, firm_id, account.id, -transaction_delta(row.transaction_type, row.amount))
        transactions.delete(row)
        enqueue_sync(db, firm_id, "bank_transactions")

    logger.info("deleted bank transaction %s for firm %s", transaction_id, firm_id)
