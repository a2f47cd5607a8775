from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.middleware import require_firm_id
from app.db.session import get_db
from services.documents import service
from services.documents.schemas import DocumentFilters, DocumentIn, DocumentType, TransactionType

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("")
def list_documents(
    document_type: DocumentType | None = None,
    party_id: str | None = None,
    status: str | None = None,
    transaction_type: TransactionType | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    filters = DocumentFilters(
        document_type=document_type,
        party_id=party_id,
        status=status,
        transaction_type=transaction_type,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return service.list_documents(db, firm_id, filters)


@router.post("", status_code=201)
def create_document(payload: DocumentIn, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.create_document(db, firm_id, payload)


@router.get("/{document_id}")
def get_document(document_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.get_document(db, firm_id, document_id)


@router.put("/{document_id}")
def update_document(
    document_id: str,
    payload: DocumentIn,
    request: Request,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    settings = request.app.state.settings
    return service.update_document(
        db, firm_id, document_id, payload, revert_bank=settings.document_update_reverts_bank
    )


@router.delete("/{document_id}")
def delete_document(document_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    service.delete_document(db, firm_id, document_id)
    return {"success": True, "message": "Document deleted and stock/payment reversed."}
