"""Access grants letting other users (by phone number) open a firm."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.db.models.firm import FirmUserShare
from app.db.repositories import FirmShareRepository
from app.db.serialize import row_to_dict
from app.db.session import get_db, transaction
from services.documents.schemas import Payload
from services.firms.api import get_firm_or_404

logger = logging.getLogger("billing.firms")

router = APIRouter(tags=["firm-shares"])


class ShareIn(Payload):
    firm_id: str = Field(..., min_length=1)
    user_number: str = Field(..., min_length=1, max_length=32)
    role: str = Field(..., min_length=1, max_length=32)


class ShareUpdate(Payload):
    role: str = Field(..., min_length=1, max_length=32)


def _share_or_404(db: Session, share_id: str) -> FirmUserShare:
    share = FirmShareRepository(db).get(share_id)
    if share is None:
        raise NotFound("Shared user not found")
    return share


@router.post("/firm-share", status_code=201)
def add_share(payload: ShareIn, db: Session = Depends(get_db)):
    with transaction(db):
        get_firm_or_404(db, payload.firm_id)
        share = FirmUserShare(**payload.model_dump())
        db.add(share)
        db.flush()
    logger.info("shared firm %s with %s as %s", share.firm_id, share.user_number, share.role)
    return {"success": True, "message": "Shared user added", "id": share.id}


@router.put("/firm-share/{share_id}")
def update_share(share_id: str, payload: ShareUpdate, db: Session = Depends(get_db)):
    with transaction(db):
        share = _share_or_404(db, share_id)
        share.role = payload.role
        db.flush()
    return {"success": True, "message": "Shared user updated"}


@router.delete("/firm-share/{share_id}")
def delete_share(share_id: str, db: Session = Depends(get_db)):
    with transaction(db):
        db.delete(_share_or_404(db, share_id))
        db.flush()
    logger.info("removed firm share %s", share_id)
    return {"success": True, "message": "Shared user deleted"}


@router.get("/firm/{firm_id}/shares")
def list_firm_shares(firm_id: str, db: Session = Depends(get_db)):
    return [row_to_dict(s) for s in FirmShareRepository(db).for_firm(firm_id)]


@router.get("/user/{user_number}/firms")
def list_user_firms(user_number: str, db: Session = Depends(get_db)):
    out = []
    for share, firm in FirmShareRepository(db).for_user(user_number):
        row = row_to_dict(share)
        row["firm_name"] = firm.name
        out.append(row)
    return out
