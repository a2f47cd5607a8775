from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationFailed
from app.db.models.payment import Payment
from app.db.repositories import BankAccountRepository, PaymentRepository
from app.db.serialize import row_to_dict
from app.db.session import transaction
from app.events.bus import enqueue_sync
from services.ledger.bank import apply_payment_to_bank
from services.ledger.party_balance import apply_payment_to_party
from services.ledger.units import to_decimal
from services.payments.schemas import PaymentIn, PaymentUpdate

logger = logging.getLogger("billing.payments")


def validate_payment(fields: dict[str, Any]) -> None:
    if fields.get("amount") is None or to_decimal(fields["amount"]) <= 0:
        raise ValidationFailed("Amount must be greater than zero")
    if not fields.get("payment_type") or not fields.get("payment_date") or not fields.get("direction"):
        raise ValidationFailed("Missing required fields")
    if fields["payment_type"] == "bank" and not fields.get("bank_account_id"):
        raise ValidationFailed("Bank account ID is required for bank payments")
    if fields["payment_type"] == "cheque" and (not fields.get("cheque_number") or not fields.get("cheque_date")):
        raise ValidationFailed("Cheque details are required for cheque payments")


def _check_bank_account(db: Session, firm_id: str, fields: dict[str, Any], message: str) -> None:
    if fields.get("payment_type") != "bank":
        return
    if BankAccountRepository(db, firm_id).get(fields.get("bank_account_id")) is None:
        raise ValidationFailed(message)


def get_payment(db: Session, firm_id: str, payment_id: str) -> dict[str, Any]:
    payment = PaymentRepository(db, firm_id).get(payment_id)
    if payment is None:
        raise NotFound("Payment not found")
    return row_to_dict(payment)


def list_payments(
    db: Session,
    firm_id: str,
    *,
    direction: str | None = None,
    party_id: str | None = None,
    payment_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[dict[str, Any]]:
    rows = PaymentRepository(db, firm_id).search(
        direction=direction,
        party_id=party_id,
        payment_type=payment_type,
        start_date=start_date,
        end_date=end_date,
    )
    return [row_to_dict(r) for r in rows]


def create_payment(db: Session, firm_id: str, payload: PaymentIn) -> dict[str, Any]:
    fields = payload.model_dump()
    validate_payment(fields)

    with transaction(db):
        _check_bank_account(db, firm_id, fields, "Bank account not found")
        payment = PaymentRepository(db, firm_id).add(Payment(**fields))
        apply_payment_to_bank(db, firm_id, payment)
        apply_payment_to_party(db, firm_id, payment)
        enqueue_sync(db, firm_id, "payments")

    logger.info("created payment %s (%s %s) for firm %s", payment.id, payment.direction, payment.amount, firm_id)
    return row_to_dict(payment)


def update_payment(
    db: Session,
    firm_id: str,
    payment_id: str,
    payload: PaymentUpdate,
    *,
    revert_party: bool = False,
) -> dict[str, Any]:
    """Merge ``payload`` into a payment and move its ledger effects.

    The old bank effect is always reverted before the new one is applied. The
    party balance is left alone unless ``revert_party`` is true; the HTTP layer
    passes the app's ``payment_update_reverts_party`` setting.
    """
    repo = PaymentRepository(db, firm_id)

    with transaction(db):
        payment = repo.get(payment_id)
        if payment is None:
            raise NotFound("Payment not found")

        changes = payload.model_dump(exclude_unset=True)
        merged = {**row_to_dict(payment), **changes}
        validate_payment(merged)
        _check_bank_account(db, firm_id, merged, "Invalid bank account")

        apply_payment_to_bank(db, firm_id, payment, reverse=True)
        if revert_party:
            apply_payment_to_party(db, firm_id, payment, reverse=True)

        for key, value in changes.items():
            setattr(payment, key, value)
        db.flush()

        apply_payment_to_bank(db, firm_id, payment)
        if revert_party:
            apply_payment_to_party(db, firm_id, payment)
        enqueue_sync(db, firm_id, "payments")

    logger.info("updated payment %s for firm %s", payment.id, firm_id)
    return row_to_dict(payment)


def delete_payment(db: Session, firm_id: str, payment_id: str) -> None:
    repo = PaymentRepository(db, firm_id)

    with transaction(db):
        payment = repo.get(payment_id)
        if payment is None:
            raise NotFound("Payment not found")

        apply_payment_to_bank(db, firm_id, payment, reverse=True)
        apply_payment_to_party(db, firm_id, payment, reverse=True)
        repo.delete(payment)
        enqueue_sync(db, firm_id, "payments")

    logger.info("deleted payment %s for firm %s", payment_id, firm_id)
