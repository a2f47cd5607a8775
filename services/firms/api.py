from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationFailed
from app.db.models.firm import Firm
from app.db.repositories import FirmRepository
from app.db.serialize import row_to_dict
from app.db.session import get_db, transaction
from services.documents.schemas import Payload

logger = logging.getLogger("billing.firms")

router = APIRouter(prefix="/firms", tags=["firms"])


class FirmIn(Payload):
    name: str = Field(..., min_length=1, max_length=256)
    country: str = ""
    phone: str = ""
    owner: str = ""
    gst_number: str | None = None
    owner_name: str | None = None
    business_name: str | None = None
    address: str | None = None
    sync_enabled: bool = False


class FirmUpdate(Payload):
    name: str | None = Field(default=None, min_length=1, max_length=256)
    country: str | None = None
    phone: str | None = None
    gst_number: str | None = None
    owner_name: str | None = None
    business_name: str | None = None
    address: str | None = None


def get_firm_or_404(db: Session, firm_id: str) -> Firm:
    firm = FirmRepository(db).get(firm_id)
    if firm is None:
        raise NotFound("Firm not found")
    return firm


@router.get("")
def list_firms(owner: str | None = None, db: Session = Depends(get_db)):
    if not owner:
        raise ValidationFailed("Missing 'owner' query parameter.")
    return [row_to_dict(f) for f in FirmRepository(db).by_owner(owner)]


@router.post("", status_code=201)
def create_firm(payload: FirmIn, db: Session = Depends(get_db)):
    firms = FirmRepository(db)
    with transaction(db):
        if firms.by_name(payload.name):
            raise ValidationFailed("Firm name must be unique")
        firm = Firm(**payload.model_dump())
        db.add(firm)
        db.flush()
    logger.info("created firm %s (%s)", firm.id, firm.name)
    return row_to_dict(firm)


@router.get("/{firm_id}")
def get_firm(firm_id: str, db: Session = Depends(get_db)):
    return row_to_dict(get_firm_or_404(db, firm_id))


@router.put("/{firm_id}")
def update_firm(firm_id: str, payload: FirmUpdate, db: Session = Depends(get_db)):
    firms = FirmRepository(db)
    with transaction(db):
        firm = get_firm_or_404(db, firm_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("name") and changes["name"] != firm.name and firms.by_name(changes["name"]):
            raise ValidationFailed("Firm name must be unique")
        for key, value in changes.items():
            setattr(firm, key, value)
        db.flush()
    return {"success": True, "message": "Firm updated successfully"}


@router.patch("/{firm_id}/toggle-sync")
def toggle_sync(firm_id: str, db: Session = Depends(get_db)):
    with transaction(db):
        firm = get_firm_or_404(db, firm_id)
        firm.sync_enabled = not firm.sync_enabled
        db.flush()
    logger.info("firm %s sync %s", firm.id, "enabled" if firm.sync_enabled else "disabled")
    return {"success": True, "id": firm.id, "sync_enabled": firm.sync_enabled}


@router.delete("/{firm_id}")
def delete_firm(firm_id: str, db: Session = Depends(get_db)):
    """Remove the firm record and its user shares. Firm-scoped data is left in place."""
    with transaction(db):
        FirmRepository(db).delete(get_firm_or_404(db, firm_id))
    logger.info("deleted firm %s", firm_id)
    return {"success": True, "message": "Firm deleted successfully"}
