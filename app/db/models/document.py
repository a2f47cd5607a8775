"""
MODULE: COMMERCIAL DOCUMENTS
Sale and purchase documents (invoices, orders, returns, quotations, challans)
with their line items, extra charges, transportation rows and links between
documents.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.models.common import HasFirm, HasId, HasTimestamps


class Document(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "documents"

    document_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    document_number: Mapped[str] = mapped_column(String(64), nullable=False)
    document_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    document_time: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # Party
    party_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    party_name: Mapped[str] = mapped_column(String(256), nullable=False)
    party_type: Mapped[str] = mapped_column(String(16), default="customer", nullable=False)  # customer|supplier
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False)  # cash|credit
    status: Mapped[str] = mapped_column(String(32), default="draft", nullable=False)

    ewaybill: Mapped[str | None] = mapped_column(String(64), nullable=True)
    billing_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    billing_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    shipping_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    po_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    po_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    state_of_supply: Mapped[str | None] = mapped_column(String(64), nullable=True)

    transport_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    vehicle_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    delivery_location: Mapped[str | None] = mapped_column(String(256), nullable=True)

    shipping: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    packaging: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    adjustment: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    discount_percentage: Mapped[Decimal | None] = mapped_column(Numeric(9, 4), nullable=True)
    discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    tax_percentage: Mapped[Decimal | None] = mapped_column(Numeric(9, 4), nullable=True)
    tax_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    round_off: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)

    # Settlement
    total: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    balance_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    payment_type: Mapped[str] = mapped_column(String(16), default="cash", nullable=False)  # cash|cheque|bank|upi|online
    bank_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    cheque_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cheque_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("firm_id", "document_type", "document_number", name="uq_documents_firm_type_number"),
    )


class DocumentItem(Base, HasId, HasFirm, HasTimestamps):
    """Document line.

    Unit fields and ``conversion_rate`` are a snapshot taken when the document
    was recorded; they are not read from the item master.
    """

    __tablename__ = "document_items"

    document_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    item_id: Mapped[str] = mapped_column(String(36), nullable=False)
    item_name: Mapped[str] = mapped_column(String(256), default="", nullable=False)

    primary_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), default=0, nullable=False)
    secondary_quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    primary_unit_id: Mapped[str] = mapped_column(String(36), default="", nullable=False)
    primary_unit_name: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    secondary_unit_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    secondary_unit_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    unit_conversion_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    conversion_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    wholesale_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    wholesale_quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    hsn_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    batch_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    serial_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    mfg_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    exp_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    tax_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    tax_rate: Mapped[str | None] = mapped_column(String(16), nullable=True)
    tax_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    discount_percent: Mapped[Decimal | None] = mapped_column(Numeric(9, 4), nullable=True)
    discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)


class DocumentCharge(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "document_charges"

    document_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)


class DocumentTransportation(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "document_transportation"

    document_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    detail: Mapped[str] = mapped_column(String(256), default="", nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)


class DocumentRelationship(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "document_relationships"

    source_document_id: Mapped[str] = mapped_column(String(36), nullable=False)
    target_document_id: Mapped[str] = mapped_column(String(36), nullable=False)
    # converted|fulfilled|returned|partial_fulfilled|partial_returned|referenced
    relationship_type: Mapped[str] = mapped_column(String(32), nullable=False)


Index("ix_doc_rel_source", DocumentRelationship.source_document_id)
Index("ix_doc_rel_target", DocumentRelationship.target_document_id)
