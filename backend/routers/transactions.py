from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from crud import ledger
from crud.audit_log import get_audit_logs
from database import get_db, transaction_scope
from models.transactions import Transaction as TransactionModel, TransactionType
from schemas.audit_log import AuditLog
from schemas.transactions import LedgerRequestBody, Transaction, TransactionEdit
from utils.auth_utils import get_current_user, require_admin
from utils.errors import EntityNotFound, PermissionDenied
from utils.timeutils import range_bounds

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("/", response_model=Transaction, status_code=status.HTTP_201_CREATED)
def create_transaction(
    body: LedgerRequestBody,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    with transaction_scope(db):
        txn = ledger.record_transaction(db, body.root, user)
    db.refresh(txn)
    return txn


@router.get("/", response_model=List[Transaction])
def read_transactions(
    type: Optional[TransactionType] = None,
    driver_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    company_id: Optional[int] = None,
    bank_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    query = db.query(TransactionModel)
    if user["role"] != "ADMIN":
        # Drivers only ever see their own rows
        driver_id = user["user_id"]
    if type:
        query = query.filter(TransactionModel.type == type)
    if driver_id is not None:
        query = query.filter(TransactionModel.driver_id == driver_id)
    if customer_id is not None:
        query = query.filter(TransactionModel.customer_id == customer_id)
    if company_id is not None:
        query = query.filter(TransactionModel.company_id == company_id)
    if bank_id is not None:
        query = query.filter((TransactionModel.bank_id == bank_id) | (TransactionModel.to_bank_id == bank_id))
    if start_date or end_date:
        start, end = range_bounds(start_date or end_date, end_date or start_date)
        query = query.filter(TransactionModel.date >= start, TransactionModel.date < end)
    return query.order_by(TransactionModel.date.desc(), TransactionModel.id.desc()).offset(skip).limit(limit).all()


@router.get("/{transaction_id}", response_model=Transaction)
def read_transaction(transaction_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    txn = db.query(TransactionModel).filter(TransactionModel.id == transaction_id).first()
    if txn is None:
        raise EntityNotFound(f"Transaction {transaction_id} not found", code="TRANSACTION_NOT_FOUND")
    if user["role"] != "ADMIN" and txn.driver_id != user["user_id"]:
        raise PermissionDenied("You can only view your own transactions")
    return txn


@router.get("/{transaction_id}/audit", response_model=List[AuditLog])
def read_transaction_audit(transaction_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    return get_audit_logs(db, 'transactions', transaction_id)


@router.patch("/{transaction_id}", response_model=Transaction)
def update_transaction(
    transaction_id: int,
    changes: TransactionEdit,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    with transaction_scope(db):
        txn = ledger.edit_transaction(db, transaction_id, changes, user)
    db.refresh(txn)
    return txn


@router.delete("/{transaction_id}", response_model=Transaction)
def delete_transaction(transaction_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    with transaction_scope(db):
        txn = ledger.delete_transaction(db, transaction_id, user)
        deleted = Transaction.model_validate(txn)
    return deleted
