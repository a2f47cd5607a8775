"""Document lifecycle: create, update and delete with their ledger effects.

Every mutation runs in one transaction. Ledgers are touched in a fixed order
on both passes: stock, then party, then bank.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, ValidationFailed
from app.db.models.document import (
    Document,
    DocumentCharge,
    DocumentItem,
    DocumentRelationship,
    DocumentTransportation,
)
from app.db.repositories import DocumentRepository
from app.db.serialize import row_to_dict
from app.db.session import transaction
from app.events.bus import enqueue_sync
from services.documents.schemas import DocumentFilters, DocumentIn
from services.ledger.bank import apply_bank_delta
from services.ledger.party_balance import apply_party_delta
from services.ledger.stock import apply_stock_deltas

logger = logging.getLogger("billing.documents")


def generate_document_number() -> str:
    return f"DOC-{int(time.time() * 1000)}"


def _line_rows(payload: DocumentIn) -> list[DocumentItem]:
    return [DocumentItem(**line.model_dump()) for line in payload.items]


def _other_rows(payload: DocumentIn) -> list[Any]:
    rows: list[Any] = [DocumentCharge(**c.model_dump()) for c in payload.charges]
    rows.extend(DocumentTransportation(**t.model_dump()) for t in payload.transportation)
    return rows


def _document_fields(payload: DocumentIn, number: str) -> dict[str, Any]:
    fields = payload.document_fields()
    fields["document_number"] = number
    fields["balance_amount"] = payload.total - payload.paid_amount
    return fields


def _apply_ledgers(
    db: Session,
    firm_id: str,
    document: Document,
    lines: list[DocumentItem],
    *,
    reverse: bool,
    include_bank: bool = True,
) -> None:
    apply_stock_deltas(db, firm_id, document.document_type, lines, reverse=reverse)
    apply_party_delta(db, firm_id, document, reverse=reverse)
    if include_bank:
        apply_bank_delta(db, firm_id, document, reverse=reverse)


def _linked(rel: DocumentRelationship, other: Document) -> dict[str, Any]:
    data = row_to_dict(rel)
    data.update(
        document_type=other.document_type,
        document_number=other.document_number,
        document_date=other.document_date,
        status=other.status,
    )
    return data


def serialize_document(
    db: Session,
    firm_id: str,
    document: Document,
    *,
    with_relationships: bool = False,
) -> dict[str, Any]:
    repo = DocumentRepository(db, firm_id)
    data = row_to_dict(document)
    data["items"] = [row_to_dict(r) for r in repo.items_for(document.id)]
    data["charges"] = [row_to_dict(r) for r in repo.charges_for(document.id)]
    data["transportation"] = [row_to_dict(r) for r in repo.transportation_for(document.id)]
    if with_relationships:
        outgoing, incoming = repo.relationships_for(document.id)
        data["relationships"] = {
            "source_documents": [_linked(rel, doc) for rel, doc in outgoing],
            "target_documents": [_linked(rel, doc) for rel, doc in incoming],
        }
    return data


def get_document(db: Session, firm_id: str, document_id: str) -> dict[str, Any]:
    document = DocumentRepository(db, firm_id).get(document_id)
    if document is None:
        raise NotFound("Document not found")
    return serialize_document(db, firm_id, document, with_relationships=True)


def list_documents(db: Session, firm_id: str, filters: DocumentFilters | None = None) -> list[dict[str, Any]]:
    filters = filters or DocumentFilters()
    rows = DocumentRepository(db, firm_id).search(**filters.model_dump())
    return [serialize_document(db, firm_id, doc) for doc in rows]


def create_document(db: Session, firm_id: str, payload: DocumentIn) -> dict[str, Any]:
    repo = DocumentRepository(db, firm_id)
    number = payload.document_number or generate_document_number()

    with transaction(db):
        if repo.number_taken(payload.document_type, number):
            raise Conflict(f"Document number '{number}' already exists for this firm.")
        for link in payload.relationships:
            if repo.get(link.source_document_id) is None:
                raise ValidationFailed(f"Source document '{link.source_document_id}' not found")

        document = repo.add(Document(**_document_fields(payload, number)))
        lines = _line_rows(payload)
        repo.add_children(document.id, lines + _other_rows(payload))
        for link in payload.relationships:
            db.add(DocumentRelationship(
                firm_id=firm_id,
                source_document_id=link.source_document_id,
                target_document_id=document.id,
                relationship_type=link.relationship_type,
            ))
        db.flush()

        _apply_ledgers(db, firm_id, document, lines, reverse=False)
        enqueue_sync(db, firm_id, "documents")

    logger.info("created %s %s (%s) for firm %s", document.document_type, document.document_number, document.id, firm_id)
    return serialize_document(db, firm_id, document)


def update_document(
    db: Session,
    firm_id: str,
    document_id: str,
    payload: DocumentIn,
    *,
    revert_bank: bool = False,
) -> dict[str, Any]:
    """Replace a document, moving ledgers from its old state to the new one.

    Stock and party effects of the old state are always reverted. The old bank
    effect is reverted only when ``revert_bank`` is true (the HTTP layer passes
    the app's ``document_update_reverts_bank`` setting); otherwise the new bank
    effect is applied on top of the old one.
    """
    repo = DocumentRepository(db, firm_id)

    with transaction(db):
        document = repo.get(document_id)
        if document is None:
            raise NotFound("Document not found")
        number = payload.document_number or document.document_number
        if repo.number_taken(payload.document_type, number, exclude_id=document.id):
            raise Conflict(f"Document number '{number}' already exists for this firm.")

        old_lines = repo.items_for(document.id)
        _apply_ledgers(db, firm_id, document, old_lines, reverse=True, include_bank=revert_bank)

        repo.delete_children(document.id)
        for key, value in _document_fields(payload, number).items():
            setattr(document, key, value)
        db.flush()

        lines = _line_rows(payload)
        repo.add_children(document.id, lines + _other_rows(payload))

        _apply_ledgers(db, firm_id, document, lines, reverse=False)
        enqueue_sync(db, firm_id, "documents")

    logger.info("updated %s %s (%s) for firm %s", document.document_type, document.document_number, document.id, firm_id)
    return serialize_document(db, firm_id, document)


def delete_document(db: Session, firm_id: str, document_id: str) -> None:
    repo = DocumentRepository(db, firm_id)

    with transaction(db):
        document = repo.get(document_id)
        if document is None:
            raise NotFound("Document not found")

        lines = repo.items_for(document.id)
        _apply_ledgers(db, firm_id, document, lines, reverse=True)

        repo.delete_children(document.id)
        repo.delete(document)
        enqueue_sync(db, firm_id, "documents")

    logger.info("deleted document %s for firm %s", document_id, firm_id)
