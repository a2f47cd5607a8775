from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from pydantic import Field

from services.documents.schemas import Payload


class BankTransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    INTEREST = "interest"
    CHARGE = "charge"
    PAYMENT = "payment"
    RECEIPT = "receipt"


class BankAccountIn(Payload):
    display_name: str = Field(..., min_length=1)
    bank_name: str = ""
    account_number: str = ""
    account_holder_name: str = ""
    ifsc_code: str = ""
    upi_id: str | None = None
    opening_balance: Decimal = Decimal("0")
    as_of_date: date | None = None
    print_upi_qr_on_invoices: bool = False
    print_bank_details_on_invoices: bool = False
    is_active: bool = True
    notes: str | None = None


class BankAccountUpdate(Payload):
    # current_balance is owned by the ledgers and cannot be set directly.
    display_name: str | None = Field(default=None, min_length=1)
    bank_name: str | None = None
    account_number: str | None = None
    account_holder_name: str | None = None
    ifsc_code: str | None = None
    upi_id: str | None = None
    as_of_date: date | None = None
    print_upi_qr_on_invoices: bool | None = None
    print_bank_details_on_invoices: bool | None = None
    is_active: bool | None = None
    notes: str | None = None


class BankTransactionIn(Payload):
    bank_account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    transaction_type: BankTransactionType
    transaction_date: date
    description: str = ""
    reference_number: str | None = None
    related_entity_id: str | None = None
    related_entity_type: str | None = None


class BankTransactionUpdate(Payload):
    bank_account_id: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = Field(default=None, gt=0)
    transaction_type: BankTransactionType | None = None
    transaction_date: date | None = None
    description: str | None = None
    reference_number: str | None = None
    related_entity_id: str | None = None
    related_entity_type: str | None = None
