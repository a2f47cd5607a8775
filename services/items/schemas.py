from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal

from pydantic import Field

from services.documents.schemas import Payload


class ItemType(str, enum.Enum):
    PRODUCT = "PRODUCT"
    SERVICE = "SERVICE"


class ItemFields(Payload):
    # Stock on hand is never accepted directly; it follows the opening
    # quantities and the stock ledger.
    item_code: str | None = None
    hsn_code: str | None = None
    category_id: str | None = None
    primary_unit_id: str | None = None
    secondary_unit_id: str | None = None
    unit_conversion_id: str | None = None
    conversion_rate: Decimal | None = Field(default=None, gt=0)
    purchase_price: Decimal | None = None
    primary_opening_quantity: Decimal | None = None
    secondary_opening_quantity: Decimal | None = None
    min_stock_level: Decimal | None = None
    opening_stock_date: date | None = None


class ItemIn(ItemFields):
    name: str = Field(..., min_length=1, max_length=256)
    item_type: ItemType = ItemType.PRODUCT
    sale_price: Decimal = Decimal("0")
    is_active: bool = True
    allow_negative_stock: bool = False


class ItemUpdate(ItemFields):
    name: str | None = Field(default=None, min_length=1, max_length=256)
    item_type: ItemType | None = None
    sale_price: Decimal | None = None
    is_active: bool | None = None
    allow_negative_stock: bool | None = None
