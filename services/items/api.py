from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.middleware import require_firm_id
from app.db.session import get_db
from services.items import service
from services.items.schemas import ItemIn, ItemType, ItemUpdate

router = APIRouter(prefix="/items", tags=["items"])


@router.get("")
def list_items(
    type: ItemType | None = None,
    category_id: str | None = None,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.list_items(db, firm_id, item_type=type.value if type else None, category_id=category_id)


@router.post("", status_code=201)
def create_item(payload: ItemIn, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.create_item(db, firm_id, payload)


@router.get("/{item_id}")
def get_item(item_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.get_item(db, firm_id, item_id)


@router.put("/{item_id}")
def update_item(
    item_id: str,
    payload: ItemUpdate,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.update_item(db, firm_id, item_id, payload)


@router.delete("/{item_id}")
def delete_item(item_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    service.delete_item(db, firm_id, item_id)
    return {"success": True, "message": "Item deleted successfully"}
