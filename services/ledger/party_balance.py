from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.db.repositories import PartyRepository
from services.ledger.units import to_decimal

logger = logging.getLogger("billing.party")

TO_PAY = "to_pay"
TO_RECEIVE = "to_receive"

# True: the party ends up owing the firm. False: the firm ends up owing the party.
CUSTOMER_SIDE = {
    "sale": True,
    "sale_invoice": True,
    "sale_return": False,
    "purchase": False,
    "purchase_invoice": False,
    "purchase_return": True,
}


@dataclass(frozen=True)
class PartyChange:
    party_id: str
    before: tuple[Decimal, str]
    after: tuple[Decimal, str]


def shift_position(balance: Any, balance_type: str | None, delta: Any) -> tuple[Decimal, str]:
    """Move a party position by ``delta`` and return ``(magnitude, type)``.

    A positive delta moves the position toward ``to_receive``, a negative one
    toward ``to_pay``. Crossing zero flips the type and keeps the remainder;
    landing exactly on zero keeps the current type.
    """
    magnitude = to_decimal(balance)
    net = magnitude if balance_type == TO_RECEIVE else -magnitude
    net += to_decimal(delta)
    if net > 0:
        return net, TO_RECEIVE
    if net < 0:
        return -net, TO_PAY
    return Decimal("0"), balance_type or TO_PAY


def _shift_party(db: Session, firm_id: str, party_id: str, delta: Decimal, reason: str) -> PartyChange | None:
    parties = PartyRepository(db, firm_id)
    party = parties.get(party_id)
    if party is None:
        logger.warning("Party %s not found for firm %s, skipping balance update", party_id, firm_id)
        return None

    before = (to_decimal(party.current_balance), party.current_balance_type)
    after = shift_position(party.current_balance, party.current_balance_type, delta)
    parties.save_balance(party, *after)
    logger.debug("party %s %s: %s -> %s", party.id, reason, before, after)
    return PartyChange(party.id, before, after)


def apply_party_delta(db: Session, firm_id: str, document: Any, reverse: bool = False) -> PartyChange | None:
    """Post the unpaid part of a document to its party's running balance."""
    if not document.party_id:
        return None

    balance_amount = to_decimal(document.total) - to_decimal(document.paid_amount)
    if balance_amount == 0:
        return None

    is_customer = CUSTOMER_SIDE.get(document.document_type)
    if is_customer is None:
        return None
    if reverse:
        is_customer = not is_customer

    delta = balance_amount if is_customer else -balance_amount
    reason = f"{'revert' if reverse else 'apply'} {document.document_type}"
    return _shift_party(db, firm_id, document.party_id, delta, reason)


def apply_payment_to_party(db: Session, firm_id: str, payment: Any, reverse: bool = False) -> PartyChange | None:
    """Post a standalone payment to its party.

    Money in settles what the party owes us (toward ``to_pay``); money out
    settles what we owe the party (toward ``to_receive``).
    """
    if not payment.party_id:
        return None

    amount = to_decimal(payment.amount)
    delta = -amount if payment.direction == "in" else amount
    if reverse:
        delta = -delta
    reason = f"{'revert' if reverse else 'apply'} payment {payment.direction}"
    return _shift_party(db, firm_id, payment.party_id, delta, reason)
