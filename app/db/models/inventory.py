"""
MODULE: ITEMS & STOCK
Item master with primary/secondary unit stock, unit reference data and the
stock movement journal.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.models.common import HasFirm, HasId, HasTimestamps


class Category(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Unit(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "units"

    fullname: Mapped[str] = mapped_column(String(64), nullable=False)
    shortname: Mapped[str] = mapped_column(String(16), nullable=False)


class UnitConversion(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "unit_conversions"

    primary_unit_id: Mapped[str] = mapped_column(String(36), nullable=False)
    secondary_unit_id: Mapped[str] = mapped_column(String(36), nullable=False)
    # How many secondary units make up one primary unit.
    conversion_rate: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)


class Item(Base, HasId, HasFirm, HasTimestamps):
    """Stock item.

    With a secondary unit configured, ``primary_quantity`` and
    ``secondary_quantity`` together hold a single quantity:
    ``primary_quantity * conversion_rate + secondary_quantity`` secondary units.
    Only the stock ledger writes the two quantity columns, apart from an
    opening quantity edit, which moves them by the same difference.
    """

    __tablename__ = "items"

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    item_type: Mapped[str] = mapped_column(String(16), default="PRODUCT", nullable=False)  # PRODUCT|SERVICE
    item_code: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    hsn_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    category_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    primary_unit_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    secondary_unit_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    unit_conversion_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    conversion_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    sale_price: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=0, nullable=False)
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)

    primary_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), default=0, nullable=False)
    secondary_quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), default=0, nullable=True)
    primary_opening_quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    secondary_opening_quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    min_stock_level: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    opening_stock_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_negative_stock: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class StockMovement(Base, HasId, HasFirm, HasTimestamps):
    __tablename__ = "stock_movements"

    item_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    document_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    document_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    movement_type: Mapped[str] = mapped_column(String(16), nullable=False)  # in|out|adjustment|conversion
    primary_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    primary_unit_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    secondary_quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    secondary_unit_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    batch_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
