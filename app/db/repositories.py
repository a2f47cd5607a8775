"""Per-entity data access, scoped to one firm.

Ledger and lifecycle code goes through these classes instead of building
queries inline, so every read and write carries the firm filter.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Generic, Iterable, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.db.models.banking import BankAccount, BankTransaction
from app.db.models.common import utcnow
from app.db.models.document import (
    Document,
    DocumentCharge,
    DocumentItem,
    DocumentRelationship,
    DocumentTransportation,
)
from app.db.models.firm import Firm, FirmUserShare
from app.db.models.inventory import Item
from app.db.models.party import Party, PartyAdditionalField
from app.db.models.payment import Payment

T = TypeVar("T")


class FirmScopedRepository(Generic[T]):
    model: type

    def __init__(self, db: Session, firm_id: str) -> None:
        self.db = db
        self.firm_id = firm_id

    def query(self):
        return self.db.query(self.model).filter(self.model.firm_id == self.firm_id)

    def get(self, row_id: str | None) -> T | None:
        if not row_id:
            return None
        return self.query().filter(self.model.id == row_id).first()

    def add(self, row: T) -> T:
        row.firm_id = self.firm_id
        self.db.add(row)
        self.db.flush()
        return row

    def delete(self, row: T) -> None:
        self.db.delete(row)
        self.db.flush()


class FirmRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, firm_id: str | None) -> Firm | None:
        if not firm_id:
            return None
        return self.db.query(Firm).filter(Firm.id == firm_id).first()

    def by_name(self, name: str) -> Firm | None:
        return self.db.query(Firm).filter(Firm.name == name).first()

    def by_owner(self, owner: str) -> list[Firm]:
        return self.db.query(Firm).filter(Firm.owner == owner).order_by(Firm.created_at.asc()).all()

    def delete(self, firm: Firm) -> None:
        # SQLite does not enforce the cascade unless foreign keys are switched on
        self.db.query(FirmUserShare).filter(FirmUserShare.firm_id == firm.id).delete()
        self.db.delete(firm)
        self.db.flush()


class FirmShareRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, share_id: str) -> FirmUserShare | None:
        return self.db.query(FirmUserShare).filter(FirmUserShare.id == share_id).first()

    def for_firm(self, firm_id: str) -> list[FirmUserShare]:
        return (
            self.db.query(FirmUserShare)
            .filter(FirmUserShare.firm_id == firm_id)
            .order_by(FirmUserShare.shared_at.asc())
            .all()
        )

    def for_user(self, user_number: str) -> list[tuple[FirmUserShare, Firm]]:
        return (
            self.db.query(FirmUserShare, Firm)
            .join(Firm, FirmUserShare.firm_id == Firm.id)
            .filter(FirmUserShare.user_number == user_number)
            .order_by(FirmUserShare.shared_at.asc())
            .all()
        )


class NamedRepository(FirmScopedRepository[T]):
    """Firm-scoped rows whose ``name`` is unique per firm, ignoring case."""

    def name_taken(self, name: str, *, exclude_id: str | None = None) -> bool:
        q = self.query().filter(func.lower(self.model.name) == name.strip().lower())
        if exclude_id:
            q = q.filter(self.model.id != exclude_id)
        return q.first() is not None


class ItemRepository(NamedRepository[Item]):
    model = Item

    def search(self, *, item_type: str | None = None, category_id: str | None = None) -> list[Item]:
        q = self.query()
        if item_type:
            q = q.filter(Item.item_type == item_type)
        if category_id:
            q = q.filter(Item.category_id == category_id)
        return q.order_by(Item.created_at.desc()).all()

    def in_documents(self, item_id: str) -> bool:
        return (
            self.db.query(DocumentItem.id)
            .filter(DocumentItem.firm_id == self.firm_id, DocumentItem.item_id == item_id)
            .first()
            is not None
        )

    def save_quantities(self, item: Item, primary: Decimal, secondary: Decimal | None = None) -> None:
        item.primary_quantity = primary
        if secondary is not None:
            item.secondary_quantity = secondary
        item.updated_at = utcnow()
        self.db.flush()


class PartyRepository(NamedRepository[Party]):
    model = Party

    def search(
        self,
        *,
        group_id: str | None = None,
        gst_type: str | None = None,
        search: str | None = None,
    ) -> list[Party]:
        q = self.query()
        if group_id:
            q = q.filter(Party.group_id == group_id)
        if gst_type:
            q = q.filter(Party.gst_type == gst_type)
        if search:
            like = f"%{search}%"
            q = q.filter(or_(
                Party.name.ilike(like),
                Party.phone.ilike(like),
                Party.email.ilike(like),
                Party.gst_number.ilike(like),
            ))
        return q.order_by(Party.created_at.desc()).all()

    def additional_fields(self, party_id: str) -> list[PartyAdditionalField]:
        return (
            self.db.query(PartyAdditionalField)
            .filter(PartyAdditionalField.firm_id == self.firm_id, PartyAdditionalField.party_id == party_id)
            .order_by(PartyAdditionalField.created_at.asc())
            .all()
        )

    def replace_additional_fields(self, party_id: str, fields: Iterable[tuple[str, str | None]]) -> None:
        (
            self.db.query(PartyAdditionalField)
            .filter(PartyAdditionalField.firm_id == self.firm_id, PartyAdditionalField.party_id == party_id)
            .delete()
        )
        for key, value in fields:
            self.db.add(PartyAdditionalField(firm_id=self.firm_id, party_id=party_id, field_key=key, field_value=value))
        self.db.flush()

    def in_documents(self, party_id: str) -> bool:
        return (
            self.db.query(Document.id)
            .filter(Document.firm_id == self.firm_id, Document.party_id == party_id)
            .first()
            is not None
        )

    def in_payments(self, party_id: str) -> bool:
        return (
            self.db.query(Payment.id)
            .filter(Payment.firm_id == self.firm_id, Payment.party_id == party_id)
            .first()
            is not None
        )

    def save_balance(self, party: Party, balance: Decimal, balance_type: str) -> None:
        party.current_balance = balance
        party.current_balance_type = balance_type
        party.updated_at = utcnow()
        self.db.flush()


class BankAccountRepository(FirmScopedRepository[BankAccount]):
    model = BankAccount

    def save_balance(self, account: BankAccount, balance: Decimal) -> None:
        account.current_balance = balance
        account.updated_at = utcnow()
        self.db.flush()

    def search(self, *, is_active: bool | None = None) -> list[BankAccount]:
        q = self.query()
        if is_active is not None:
            q = q.filter(BankAccount.is_active == is_active)
        return q.order_by(BankAccount.created_at.asc()).all()


class BankTransactionRepository(FirmScopedRepository[BankTransaction]):
    model = BankTransaction

    def for_account(self, bank_account_id: str) -> list[BankTransaction]:
        return self.query().filter(BankTransaction.bank_account_id == bank_account_id).all()

    def search(
        self,
        *,
        bank_account_id: str | None = None,
        transaction_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[BankTransaction]:
        q = self.query()
        if bank_account_id:
            q = q.filter(BankTransaction.bank_account_id == bank_account_id)
        if transaction_type:
            q = q.filter(BankTransaction.transaction_type == transaction_type)
        if start_date:
            q = q.filter(BankTransaction.transaction_date >= start_date)
        if end_date:
            q = q.filter(BankTransaction.transaction_date <= end_date)
        return q.order_by(BankTransaction.transaction_date.desc(), BankTransaction.created_at.desc()).all()


class PaymentRepository(FirmScopedRepository[Payment]):
    model = Payment

    def search(
        self,
        *,
        direction: str | None = None,
        party_id: str | None = None,
        payment_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Payment]:
        q = self.query()
        if direction:
            q = q.filter(Payment.direction == direction)
        if party_id:
            q = q.filter(Payment.party_id == party_id)
        if payment_type:
            q = q.filter(Payment.payment_type == payment_type)
        if start_date:
            q = q.filter(Payment.payment_date >= start_date)
        if end_date:
            q = q.filter(Payment.payment_date <= end_date)
        return q.order_by(Payment.payment_date.desc(), Payment.created_at.desc()).all()


class DocumentRepository(FirmScopedRepository[Document]):
    model = Document

    def number_taken(self, document_type: str, document_number: str, *, exclude_id: str | None = None) -> bool:
        q = self.query().filter(
            Document.document_type == document_type,
            Document.document_number == document_number,
        )
        if exclude_id:
            q = q.filter(Document.id != exclude_id)
        return q.first() is not None

    def _children(self, model, document_id: str) -> list:
        return (
            self.db.query(model)
            .filter(model.firm_id == self.firm_id, model.document_id == document_id)
            .order_by(model.created_at.asc())
            .all()
        )

    def items_for(self, document_id: str) -> list[DocumentItem]:
        return self._children(DocumentItem, document_id)

    def charges_for(self, document_id: str) -> list[DocumentCharge]:
        return self._children(DocumentCharge, document_id)

    def transportation_for(self, document_id: str) -> list[DocumentTransportation]:
        return self._children(DocumentTransportation, document_id)

    def relationships_for(self, document_id: str) -> tuple[list[tuple], list[tuple]]:
        """Links where this document is the source, then where it is the target.

        Each entry pairs the relationship row with the document on the other end.
        """
        outgoing = (
            self.db.query(DocumentRelationship, Document)
            .join(Document, DocumentRelationship.target_document_id == Document.id)
            .filter(DocumentRelationship.firm_id == self.firm_id, DocumentRelationship.source_document_id == document_id)
            .all()
        )
        incoming = (
            self.db.query(DocumentRelationship, Document)
            .join(Document, DocumentRelationship.source_document_id == Document.id)
            .filter(DocumentRelationship.firm_id == self.firm_id, DocumentRelationship.target_document_id == document_id)
            .all()
        )
        return outgoing, incoming

    def add_children(self, document_id: str, rows: Iterable) -> None:
        for row in rows:
            row.firm_id = self.firm_id
            row.document_id = document_id
            self.db.add(row)
        self.db.flush()

    def delete_children(self, document_id: str) -> None:
        for model in (DocumentItem, DocumentCharge, DocumentTransportation):
            (
                self.db.query(model)
                .filter(model.firm_id == self.firm_id, model.document_id == document_id)
                .delete(synchronize_session=False)
            )
        self.db.flush()

    def search(
        self,
        *,
        document_type: str | None = None,
        party_id: str | None = None,
        status: str | None = None,
        transaction_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        search: str | None = None,
    ) -> list[Document]:
        q = self.query()
        if document_type:
            q = q.filter(Document.document_type == document_type)
        if party_id:
            q = q.filter(Document.party_id == party_id)
        if status:
            q = q.filter(Document.status == status)
        if transaction_type:
            q = q.filter(Document.transaction_type == transaction_type)
        if start_date:
            q = q.filter(Document.document_date >= start_date)
        if end_date:
            q = q.filter(Document.document_date <= end_date)
        if search:
            like = f"%{search}%"
            q = q.filter(or_(
                Document.party_name.ilike(like),
                Document.document_number.ilike(like),
                Document.phone.ilike(like),
            ))
        return q.order_by(Document.document_date.desc(), Document.created_at.desc()).all()
