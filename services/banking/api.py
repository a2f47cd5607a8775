from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.middleware import require_firm_id
from app.db.session import get_db
from services.banking import service
from services.banking.schemas import (
    BankAccountIn,
    BankAccountUpdate,
    BankTransactionIn,
    BankTransactionType,
    BankTransactionUpdate,
)

router = APIRouter(prefix="/banking", tags=["banking"])


# ---- Accounts ----
@router.get("/accounts")
def list_accounts(
    is_active: bool | None = None,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.list_bank_accounts(db, firm_id, is_active=is_active)


@router.post("/accounts", status_code=201)
def create_account(payload: BankAccountIn, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.create_bank_account(db, firm_id, payload)


@router.get("/accounts/{account_id}")
def get_account(account_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.get_bank_account(db, firm_id, account_id)


@router.put("/accounts/{account_id}")
def update_account(
    account_id: str,
    payload: BankAccountUpdate,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.update_bank_account(db, firm_id, account_id, payload)


@router.delete("/accounts/{account_id}")
def delete_account(account_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    removed = service.delete_bank_account(db, firm_id, account_id)
    return {
        "success": True,
        "message": f"Bank account and {removed} related transactions deleted successfully",
    }


# ---- Transactions ----
@router.get("/transactions")
def list_transactions(
    bank_account_id: str | None = None,
    transaction_type: BankTransactionType | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.list_bank_transactions(
        db,
        firm_id,
        bank_account_id=bank_account_id,
        transaction_type=transaction_type.value if transaction_type else None,
        start_date=start_date,
        end_date=end_date,
    )


@router.post("/transactions", status_code=201)
def create_transaction(payload: BankTransactionIn, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.create_bank_transaction(db, firm_id, payload)


@router.get("/transactions/{transaction_id}")
def get_transaction(transaction_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.get_bank_transaction(db, firm_id, transaction_id)


@router.put("/transactions/{transaction_id}")
def update_transaction(
    transaction_id: str,
    payload: BankTransactionUpdate,
    db: Session = Depends(get_db),
    firm_id: str = Depends(require_firm_id),
):
    return service.update_bank_transaction(db, firm_id, transaction_id, payload)


@router.delete("/transactions/{transaction_id}")
def delete_transaction(transaction_id: str, db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    service.delete_bank_transaction(db, firm_id, transaction_id)
    return {"success": True, "message": "Transaction deleted successfully"}
