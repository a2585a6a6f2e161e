from decimal import Decimal
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from database import get_db
from models.banks import Bank as BankModel
from schemas.audit_log import AuditLogCreate
from schemas.banks import Bank, BankCreate, BankSummary, BankUpdate
from utils import sqlalchemy_to_dict, to_decimal
from utils.auth_utils import get_current_user, get_user_identifier, require_admin
from utils.timeutils import now

router = APIRouter(prefix="/banks", tags=["Banks"])
logger = logging.getLogger("banks")


def _get_or_404(db: Session, bank_id: int) -> BankModel:
    db_bank = db.query(BankModel).filter(BankModel.id == bank_id).first()
    if db_bank is None:
        raise HTTPException(status_code=404, detail="Bank not found")
    return db_bank


@router.post("/", response_model=Bank, status_code=status.HTTP_201_CREATED)
def create_bank(bank: BankCreate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    db_bank = BankModel(**bank.model_dump(), created_by=get_user_identifier(user))
    db.add(db_bank)
    db.commit()
    db.refresh(db_bank)
    logger.info(f"Bank '{db_bank.name}' opened with balance {db_bank.balance} by user {get_user_identifier(user)}")
    return db_bank


@router.get("/", response_model=List[Bank])
def read_banks(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return db.query(BankModel).order_by(BankModel.id).all()


@router.get("/summary", response_model=BankSummary)
def read_bank_summary(db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    banks = db.query(BankModel).order_by(BankModel.id).all()
    return BankSummary(
        banks=[Bank.model_validate(b) for b in banks],
        total_bank_balance=sum((to_decimal(b.balance) for b in banks), Decimal("0")),
    )


@router.get("/{bank_id}", response_model=Bank)
def read_bank(bank_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return _get_or_404(db, bank_id)


@router.patch("/{bank_id}", response_model=Bank)
def update_bank(bank_id: int, bank: BankUpdate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    """Rename or relabel a bank. Balance changes go through an UPDATE_BANK transaction."""
    db_bank = _get_or_404(db, bank_id)
    old_values = sqlalchemy_to_dict(db_bank)
    for key, value in bank.model_dump(exclude_unset=True).items():
        setattr(db_bank, key, value)
    db_bank.updated_at = now()
    db_bank.updated_by = get_user_identifier(user)

    create_audit_log(db=db, log_entry=AuditLogCreate(
        table_name='banks',
        record_id=bank_id,
        changed_by=get_user_identifier(user),
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_bank)
    ))
    db.commit()
    db.refresh(db_bank)
    return db_bank


@router.delete("/{bank_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bank(bank_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    db_bank = _get_or_404(db, bank_id)
    if to_decimal(db_bank.balance) != Decimal("0"):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Bank '{db_bank.name}' still holds {db_bank.balance}; move the balance out first",
        )
    old_values = sqlalchemy_to_dict(db_bank)
    db_bank.deleted_at = now()
    db_bank.deleted_by = get_user_identifier(user)

    create_audit_log(db=db, log_entry=AuditLogCreate(
        table_name='banks',
        record_id=bank_id,
        changed_by=get_user_identifier(user),
        action='DELETE',
        old_values=old_values,
        new_values={}
    ))
    db.commit()
    logger.info(f"Bank '{db_bank.name}' (ID: {bank_id}) deleted by user {get_user_identifier(user)}")
