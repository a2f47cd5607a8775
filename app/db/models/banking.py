from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.models.common import HasFirm, HasId, HasTimestamps


class BankAccount(Base, HasId, HasFirm, HasTimestamps):
    """Bank account. ``current_balance`` is signed; overdraft is allowed."""

    __tablename__ = "bank_accounts"

    display_name: Mapped[str] = mapped_column(String(128), nullable=False)
    bank_name: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    account_number: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    account_holder_name: Mapped[str] = mapped_column(String(256), default="", nullable=False)
    ifsc_code: Mapped[str] = mapped_column(String(32), default="", nullable=False)
    upi_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    opening_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    current_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    as_of_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    print_upi_qr_on_invoices: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    print_bank_details_on_invoices: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class BankTransaction(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "bank_transactions"

    bank_account_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # deposit|withdrawal|transfer|interest|charge|payment|receipt
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    reference_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    related_entity_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    related_entity_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
