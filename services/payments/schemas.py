from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from services.documents.schemas import Payload


class PaymentMedium(str, enum.Enum):
    CASH = "cash"
    CHEQUE = "cheque"
    BANK = "bank"


class PaymentDirection(str, enum.Enum):
    IN = "in"
    OUT = "out"


class PaymentFields(Payload):
    # Presence of the core fields is checked by the service so that a missing
    # field and a non-positive amount get distinct messages.
    amount: Decimal | None = None
    payment_type: PaymentMedium | None = None
    payment_date: date | None = None
    direction: PaymentDirection | None = None

    party_id: str | None = None
    party_name: str | None = None
    bank_account_id: str | None = None
    cheque_number: str | None = None
    cheque_date: date | None = None

    reference_number: str | None = None
    receipt_number: str | None = None
    description: str | None = None
    image_url: str | None = None
    linked_document_id: str | None = None
    linked_document_type: str | None = None
    is_reconciled: bool = False


class PaymentIn(PaymentFields):
    pass


class PaymentUpdate(PaymentFields):
    """Partial update; only the keys present in the request are applied."""

    is_reconciled: bool | None = None
