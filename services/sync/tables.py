from __future__ import annotations

from app.core.errors import ValidationFailed
from app.db.models.banking import BankAccount, BankTransaction
from app.db.models.document import (
    Document,
    DocumentCharge,
    DocumentItem,
    DocumentRelationship,
    DocumentTransportation,
)
from app.db.models.firm import Firm
from app.db.models.inventory import Category, Item, StockMovement, Unit, UnitConversion
from app.db.models.party import Party, PartyAdditionalField, PartyGroup
from app.db.models.payment import Payment

# Push/pull order: referenced tables before the tables that point at them.
SYNC_TABLES: tuple[str, ...] = (
    "firms",
    "categories",
    "units",
    "unit_conversions",
    "items",
    "groups",
    "parties",
    "party_additional_fields",
    "documents",
    "document_items",
    "document_charges",
    "document_transportation",
    "document_relationships",
    "stock_movements",
    "bank_accounts",
    "bank_transactions",
    "payments",
)

TABLE_MODELS: dict[str, type] = {
    "firms": Firm,
    "categories": Category,
    "units": Unit,
    "unit_conversions": UnitConversion,
    "items": Item,
    "groups": PartyGroup,
    "parties": Party,
    "party_additional_fields": PartyAdditionalField,
    "documents": Document,
    "document_items": DocumentItem,
    "document_charges": DocumentCharge,
    "document_transportation": DocumentTransportation,
    "document_relationships": DocumentRelationship,
    "stock_movements": StockMovement,
    "bank_accounts": BankAccount,
    "bank_transactions": BankTransaction,
    "payments": Payment,
}

# Tables whose rows a mutation of the key table can change.
RELATED_TABLES: dict[str, tuple[str, ...]] = {
    "documents": (
        "documents",
        "document_items",
        "document_charges",
        "document_transportation",
        "document_relationships",
        "stock_movements",
        "parties",
        "items",
        "bank_accounts",
    ),
    "payments": ("payments", "bank_transactions", "bank_accounts", "parties", "items"),
    "parties": ("parties", "party_additional_fields"),
    "bank_transactions": ("bank_transactions", "bank_accounts"),
}


def related_tables(table: str) -> tuple[str, ...]:
    return RELATED_TABLES.get(table, (table,))


def model_for(table: str) -> type:
    try:
        return TABLE_MODELS[table]
    except KeyError:
        raise ValidationFailed(f"Unknown table '{table}'") from None
