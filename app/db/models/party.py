from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.models.common import HasFirm, HasId, HasTimestamps


class PartyGroup(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "groups"

    group_name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Party(Base, HasId, HasFirm, HasTimestamps):
    """Counterparty with a running balance.

    ``current_balance`` is always the magnitude of the net position; which side
    owes the other is carried only by ``current_balance_type``:
    ``to_pay`` (the firm owes the party) or ``to_receive`` (the party owes the firm).
    """

    __tablename__ = "parties"

    name: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    gst_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    group_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    gst_type: Mapped[str] = mapped_column(String(32), default="Unregistered", nullable=False)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    billing_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    shipping_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    opening_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    opening_balance_type: Mapped[str] = mapped_column(String(16), default="to_pay", nullable=False)
    opening_balance_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    current_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    current_balance_type: Mapped[str] = mapped_column(String(16), default="to_pay", nullable=False)

    credit_limit_type: Mapped[str] = mapped_column(String(16), default="none", nullable=False)
    credit_limit_value: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    payment_reminder_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_reminder_days: Mapped[int | None] = mapped_column(Integer, nullable=True)


class PartyAdditionalField(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "party_additional_fields"

    party_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    field_key: Mapped[str] = mapped_column(String(128), nullable=False)
    field_value: Mapped[str | None] = mapped_column(Text, nullable=True)
