from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.middleware import require_firm_id
from app.db.session import get_db
from services.payments import service
from services.payments.schemas import PaymentDirection, PaymentIn, PaymentMedium, PaymentUpdate

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("")
def list_payments(
    direction: PaymentDirection | None = None,
    party_id: str | None = None,
    payment_type: PaymentMedium | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.list_payments(
        db,
        firm_id,
        direction=direction.value if direction else None,
        party_id=party_id,
        payment_type=payment_type.value if payment_type else None,
        start_date=start_date,
        end_date=end_date,
    )


@router.post("", status_code=201)
def create_payment(payload: PaymentIn, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.create_payment(db, firm_id, payload)


@router.get("/{payment_id}")
def get_payment(payment_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.get_payment(db, firm_id, payment_id)


@router.put("/{payment_id}")
def update_payment(
    payment_id: str,
    payload: PaymentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    settings = request.app.state.settings
    return service.update_payment(
        db, firm_id, payment_id, payload, revert_party=settings.payment_update_reverts_party
    )


@router.delete("/{payment_id}")
def delete_payment(payment_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    service.delete_payment(db, firm_id, payment_id)
    return {"success": True, "message": "Payment deleted successfully"}
