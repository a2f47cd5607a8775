from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.middleware import require_firm_id
from app.db.session import get_db
from services.parties import service
from services.parties.schemas import PartyIn, PartyUpdate

router = APIRouter(prefix="/parties", tags=["parties"])


@router.get("")
def list_parties(
    group_id: str | None = None,
    gst_type: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.list_parties(db, firm_id, group_id=group_id, gst_type=gst_type, search=search)


@router.post("", status_code=201)
def create_party(payload: PartyIn, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.create_party(db, firm_id, payload)


@router.get("/{party_id}")
def get_party(party_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.get_party(db, firm_id, party_id)


@router.put("/{party_id}")
def update_party(
    party_id: str,
    payload: PartyUpdate,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.update_party(db, firm_id, party_id, payload)


@router.delete("/{party_id}")
def delete_party(party_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    service.delete_party(db, firm_id, party_id)
    return {"success": True, "message": "Party deleted successfully"}
