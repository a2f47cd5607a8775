from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from pydantic import Field

from services.documents.schemas import Payload


class BalanceType(str, enum.Enum):
    TO_PAY = "to_pay"
    TO_RECEIVE = "to_receive"


class AdditionalField(Payload):
    key: str = Field(..., min_length=1)
    value: str | None = None


class PartyFields(Payload):
    gst_number: str | None = None
    phone: str | None = None
    email: str | None = None
    group_id: str | None = None
    state: str | None = None
    billing_address: str | None = None
    shipping_address: str | None = None
    opening_balance_date: date | None = None
    credit_limit_value: Decimal | None = None
    payment_reminder_days: int | None = None


class PartyIn(PartyFields):
    name: str = Field(..., min_length=1, max_length=256)
    gst_type: str = "Unregistered"
    opening_balance: Decimal = Field(default=Decimal("0"), ge=0)
    opening_balance_type: BalanceType = BalanceType.TO_PAY
    credit_limit_type: str = "none"
    payment_reminder_enabled: bool = False
    additional_fields: list[AdditionalField] = []


class PartyUpdate(PartyFields):
    """Partial update. ``additional_fields``, when sent, replaces the stored set."""

    name: str | None = Field(default=None, min_length=1, max_length=256)
    gst_type: str | None = None
    opening_balance: Decimal | None = Field(default=None, ge=0)
    opening_balance_type: BalanceType | None = None
    credit_limit_type: str | None = None
    payment_reminder_enabled: bool | None = None
    additional_fields: list[AdditionalField] | None = None
