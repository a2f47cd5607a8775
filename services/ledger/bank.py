from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.db.models.banking import BankAccount
from app.db.repositories import BankAccountRepository
from services.ledger.units import to_decimal

logger = logging.getLogger("billing.bank")


def is_sale_type(document_type: str) -> bool:
    return document_type == "sale" or document_type.startswith("sale_")


def is_purchase_type(document_type: str) -> bool:
    return document_type.startswith("purchase_")


def adjust_bank_balance(db: Session, firm_id: str, bank_account_id: str, delta: Any) -> BankAccount | None:
    """Add ``delta`` to an account balance. Negative balances are allowed."""
    accounts = BankAccountRepository(db, firm_id)
    account = accounts.get(bank_account_id)
    if account is None:
        logger.warning("Bank account %s not found for firm %s, skipping balance update", bank_account_id, firm_id)
        return None

    before = to_decimal(account.current_balance)
    accounts.save_balance(account, before + to_decimal(delta))
    logger.debug("bank %s: %s -> %s", account.id, before, account.current_balance)
    return account


def document_bank_delta(document: Any, reverse: bool = False) -> Decimal:
    if document.payment_type != "bank" or not document.bank_id:
        return Decimal("0")
    paid = to_decimal(document.paid_amount)
    if paid == 0:
        return Decimal("0")

    if is_sale_type(document.document_type):
        delta = paid
    elif is_purchase_type(document.document_type):
        delta = -paid
    else:
        return Decimal("0")
    return -delta if reverse else delta


def apply_bank_delta(db: Session, firm_id: str, document: Any, reverse: bool = False) -> BankAccount | None:
    """Post the paid part of a bank-settled document to its bank account."""
    delta = document_bank_delta(document, reverse)
    if delta == 0:
        return None
    return adjust_bank_balance(db, firm_id, document.bank_id, delta)


def payment_bank_delta(payment: Any, reverse: bool = False) -> Decimal:
    if payment.payment_type != "bank" or not payment.bank_account_id:
        return Decimal("0")
    amount = to_decimal(payment.amount)
    delta = amount if payment.direction == "in" else -amount
    return -delta if reverse else delta


def apply_payment_to_bank(db: Session, firm_id: str, payment: Any, reverse: bool = False) -> BankAccount | None:
    delta = payment_bank_delta(payment, reverse)
    if delta == 0:
        return None
    return adjust_bank_balance(db, firm_id, payment.bank_account_id, delta)
