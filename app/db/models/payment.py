from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.models.common import HasFirm, HasId, HasTimestamps


class Payment(Base, HasId, HasFirm, HasTimestamps):
    """Standalone payment in or out.

    ``linked_document_*`` is informational only; ledger effects come from the
    payment's own fields.
    """

    __tablename__ = "payments"

    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    payment_type: Mapped[str] = mapped_column(String(16), nullable=False)  # cash|cheque|bank
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)  # in|out

    party_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    party_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    bank_account_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    cheque_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cheque_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    reference_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    receipt_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    linked_document_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    linked_document_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_reconciled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


Index("ix_payments_direction", Payment.direction)
Index("ix_payments_party", Payment.party_id)
Index("ix_payments_bank_account", Payment.bank_account_id)
Index("ix_payments_date", Payment.payment_date)
