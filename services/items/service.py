from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationFailed
from app.db.models.inventory import Item
from app.db.repositories import ItemRepository
from app.db.serialize import row_to_dict
from app.db.session import transaction
from app.events.bus import enqueue_sync
from services.items.schemas import ItemIn, ItemUpdate
from services.ledger.units import to_decimal

logger = logging.getLogger("billing.items")

DUPLICATE_NAME = "Item name must be unique (case-insensitive)"


def _get_or_404(items: ItemRepository, item_id: str) -> Item:
    item = items.get(item_id)
    if item is None:
        raise NotFound("Item not found")
    return item


def _opening_diff(item: Item, changes: dict[str, Any], column: str) -> Decimal:
    before = to_decimal(getattr(item, column))
    return to_decimal(changes.get(column, before)) - before


def list_items(
    db: Session,
    firm_id: str,
    *,
    item_type: str | None = None,
    category_id: str | None = None,
) -> list[dict[str, Any]]:
    rows = ItemRepository(db, firm_id).search(item_type=item_type, category_id=category_id)
    return [row_to_dict(i) for i in rows]


def get_item(db: Session, firm_id: str, item_id: str) -> dict[str, Any]:
    return row_to_dict(_get_or_404(ItemRepository(db, firm_id), item_id))


def create_item(db: Session, firm_id: str, payload: ItemIn) -> dict[str, Any]:
    fields = payload.model_dump()
    fields["name"] = fields["name"].strip()
    items = ItemRepository(db, firm_id)

    with transaction(db):
        if items.name_taken(fields["name"]):
            raise ValidationFailed(DUPLICATE_NAME)
        item = items.add(Item(
            **fields,
            primary_quantity=to_decimal(fields["primary_opening_quantity"]),
            secondary_quantity=to_decimal(fields["secondary_opening_quantity"]),
        ))
        enqueue_sync(db, firm_id, "items")

    logger.info("created item %s for firm %s", item.id, firm_id)
    return row_to_dict(item)


def update_item(db: Session, firm_id: str, item_id: str, payload: ItemUpdate) -> dict[str, Any]:
    """Apply a partial update.

    A changed opening quantity moves stock on hand by the same difference. The
    name cannot change once the item appears on a document.
    """
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    items = ItemRepository(db, firm_id)

    with transaction(db):
        item = _get_or_404(items, item_id)

        name = changes.pop("name", "").strip()
        if name and name != item.name:
            if items.name_taken(name, exclude_id=item.id):
                raise ValidationFailed(DUPLICATE_NAME)
            if items.in_documents(item.id):
                raise ValidationFailed("Cannot update item name. The item is used in one or more documents.")
            changes["name"] = name

        primary_diff = _opening_diff(item, changes, "primary_opening_quantity")
        secondary_diff = _opening_diff(item, changes, "secondary_opening_quantity")
        if primary_diff or secondary_diff:
            items.save_quantities(
                item,
                to_decimal(item.primary_quantity) + primary_diff,
                to_decimal(item.secondary_quantity) + secondary_diff,
            )
            logger.debug("item %s opening moved stock by %s/%s", item.id, primary_diff, secondary_diff)

        for key, value in changes.items():
            setattr(item, key, value)
        db.flush()
        enqueue_sync(db, firm_id, "items")

    logger.info("updated item %s for firm %s", item.id, firm_id)
    return row_to_dict(item)


def delete_item(db: Session, firm_id: str, item_id: str) -> None:
    items = ItemRepository(db, firm_id)
    with transaction(db):
        item = _get_or_404(items, item_id)
        if items.in_documents(item.id):
            raise ValidationFailed("Cannot delete item. It is used in one or more documents.")
        items.delete(item)
        enqueue_sync(db, firm_id, "items")
    logger.info("deleted item %s for firm %s", item_id, firm_id)
