from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DocumentType(str, enum.Enum):
    SALE_INVOICE = "sale_invoice"
    SALE_ORDER = "sale_order"
    SALE_RETURN = "sale_return"
    SALE_QUOTATION = "sale_quotation"
    DELIVERY_CHALLAN = "delivery_challan"
    PURCHASE_INVOICE = "purchase_invoice"
    PURCHASE_ORDER = "purchase_order"
    PURCHASE_RETURN = "purchase_return"


class TransactionType(str, enum.Enum):
    CASH = "cash"
    CREDIT = "credit"


class PaymentType(str, enum.Enum):
    CASH = "cash"
    CHEQUE = "cheque"
    BANK = "bank"
    UPI = "upi"
    ONLINE = "online"


class RelationshipType(str, enum.Enum):
    CONVERTED = "converted"
    FULFILLED = "fulfilled"
    RETURNED = "returned"
    PARTIAL_FULFILLED = "partial_fulfilled"
    PARTIAL_RETURNED = "partial_returned"
    REFERENCED = "referenced"


class Payload(BaseModel):
    """Accepts snake_case or camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )


class LineItemIn(Payload):
    item_id: str = Field(..., min_length=1)
    item_name: str = ""
    primary_quantity: Decimal = Decimal("0")
    secondary_quantity: Decimal | None = None
    primary_unit_id: str = ""
    primary_unit_name: str = ""
    secondary_unit_id: str | None = None
    secondary_unit_name: str | None = None
    unit_conversion_id: str | None = None
    conversion_rate: Decimal | None = None

    price_per_unit: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    wholesale_price: Decimal | None = None
    wholesale_quantity: Decimal | None = None

    hsn_code: str | None = None
    batch_no: str | None = None
    serial_no: str | None = None
    mfg_date: date | None = None
    exp_date: date | None = None
    tax_type: str | None = None
    tax_rate: str | None = None
    tax_amount: Decimal | None = None
    discount_percent: Decimal | None = None
    discount_amount: Decimal | None = None


class ChargeIn(Payload):
    name: str = ""
    amount: Decimal = Decimal("0")


class TransportIn(Payload):
    type: str = ""
    detail: str = ""
    amount: Decimal | None = None


class RelationshipIn(Payload):
    # The new document becomes the target of the link.
    source_document_id: str
    relationship_type: RelationshipType = RelationshipType.CONVERTED


class DocumentIn(Payload):
    document_type: DocumentType
    document_number: str | None = None
    document_date: date
    document_time: str | None = None

    party_id: str | None = None
    party_name: str = Field(..., min_length=1)
    party_type: str = "customer"
    phone: str | None = None

    transaction_type: TransactionType
    status: str = "draft"

    ewaybill: str | None = None
    billing_name: str | None = None
    billing_address: str | None = None
    shipping_address: str | None = None
    po_number: str | None = None
    po_date: date | None = None
    state_of_supply: str | None = None

    transport_name: str | None = None
    vehicle_number: str | None = None
    delivery_date: date | None = None
    delivery_location: str | None = None

    shipping: Decimal | None = None
    packaging: Decimal | None = None
    adjustment: Decimal | None = None
    discount_percentage: Decimal | None = None
    discount_amount: Decimal | None = None
    tax_percentage: Decimal | None = None
    tax_amount: Decimal | None = None
    round_off: Decimal = Decimal("0")

    total: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    payment_type: PaymentType = PaymentType.CASH
    bank_id: str | None = None
    cheque_number: str | None = None
    cheque_date: date | None = None

    description: str | None = None
    image: str | None = None

    items: list[LineItemIn] = Field(default_factory=list)
    charges: list[ChargeIn] = Field(default_factory=list)
    transportation: list[TransportIn] = Field(default_factory=list)
    relationships: list[RelationshipIn] = Field(default_factory=list)

    def document_fields(self) -> dict:
        return self.model_dump(exclude={"items", "charges", "transportation", "relationships"})


class DocumentFilters(BaseModel):
    document_type: DocumentType | None = None
    party_id: str | None = None
    status: str | None = None
    transaction_type: TransactionType | None = None
    start_date: date | None = None
    end_date: date | None = None
    search: str | None = None

    model_config = ConfigDict(use_enum_values=True)
