from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy.orm import Session

from app.db.repositories import ItemRepository
from services.ledger.units import from_composite, has_secondary_unit, to_composite, to_decimal

logger = logging.getLogger("billing.stock")

STOCK_AFFECTING_TYPES = frozenset({
    "purchase_invoice",
    "purchase_return",
    "sale",
    "sale_return",
    "sale_invoice",
    "delivery_challan",
})

# Documents that take goods out of the firm's stock.
STOCK_OUT_TYPES = frozenset({"sale", "sale_invoice", "purchase_return", "delivery_challan"})


@dataclass(frozen=True)
class StockChange:
    item_id: str
    before_primary: Decimal
    before_secondary: Decimal
    after_primary: Decimal
    after_secondary: Decimal


def stock_sign(document_type: str, reverse: bool = False) -> int:
    sign = -1 if document_type in STOCK_OUT_TYPES else 1
    return -sign if reverse else sign


def plan_stock_change(
    items: ItemRepository,
    document_type: str,
    line: Any,
    reverse: bool = False,
) -> StockChange | None:
    """Work out a line's new quantities for its item without writing anything."""
    if document_type not in STOCK_AFFECTING_TYPES:
        return None

    item = items.get(line.item_id)
    if item is None:
        logger.warning("Item %s not found for firm %s, skipping stock update", line.item_id, items.firm_id)
        return None

    sign = stock_sign(document_type, reverse)
    primary_delta = to_decimal(line.primary_quantity)
    secondary_delta = to_decimal(getattr(line, "secondary_quantity", None))
    current_primary = to_decimal(item.primary_quantity)
    current_secondary = to_decimal(item.secondary_quantity)

    if not has_secondary_unit(line):
        new_primary = current_primary + sign * primary_delta
        new_secondary = current_secondary
    else:
        rate = line.conversion_rate
        current_total = to_composite(current_primary, current_secondary, rate)
        change = to_composite(primary_delta, secondary_delta, rate)
        new_primary, new_secondary = from_composite(current_total + sign * change, rate)

    return StockChange(item.id, current_primary, current_secondary, new_primary, new_secondary)


def _write(items: ItemRepository, change: StockChange, line: Any, document_type: str, reverse: bool) -> None:
    item = items.get(change.item_id)
    if has_secondary_unit(line):
        items.save_quantities(item, change.after_primary, change.after_secondary)
    else:
        items.save_quantities(item, change.after_primary)
    logger.debug(
        "stock %s item=%s type=%s: (%s, %s) -> (%s, %s)",
        "revert" if reverse else "apply",
        item.id,
        document_type,
        change.before_primary,
        change.before_secondary,
        change.after_primary,
        change.after_secondary,
    )


def apply_stock_delta(
    db: Session,
    firm_id: str,
    document_type: str,
    line: Any,
    reverse: bool = False,
) -> StockChange | None:
    """Apply one document line to its item's stock.

    Returns None when the document type does not move stock or the item is
    not found for this firm. Stock may go negative.
    """
    items = ItemRepository(db, firm_id)
    change = plan_stock_change(items, document_type, line, reverse)
    if change is not None:
        _write(items, change, line, document_type, reverse)
    return change


def apply_stock_deltas(
    db: Session,
    firm_id: str,
    document_type: str,
    lines: Iterable[Any],
    reverse: bool = False,
) -> list[StockChange]:
    """Apply every line of a document.

    A line whose new quantities cannot be worked out (bad quantity, bad rate)
    is logged and skipped; the other lines still apply. Errors raised while
    writing are not caught: they leave the session needing a rollback, so
    they propagate and the caller's transaction undoes the whole document.
    """
    if document_type not in STOCK_AFFECTING_TYPES:
        return []

    items = ItemRepository(db, firm_id)
    changes: list[StockChange] = []
    for line in lines:
        try:
            change = plan_stock_change(items, document_type, line, reverse)
        except Exception:
            logger.exception("Error updating stock for item %s", getattr(line, "item_id", None))
            continue
        if change is not None:
            _write(items, change, line, document_type, reverse)
            changes.append(change)
    return changes
