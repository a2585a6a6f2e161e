from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models.borrowed_money import BorrowedMoney as BorrowedMoneyModel
from schemas.borrowed_money import BorrowedMoney, BorrowedMoneyCreate, BorrowedMoneyUpdate
from utils.auth_utils import get_user_identifier, require_admin

router = APIRouter(prefix="/borrowed-money", tags=["Borrowed Money"])
logger = logging.getLogger("borrowed_money")


def _get_or_404(db: Session, record_id: int) -> BorrowedMoneyModel:
    record = db.query(BorrowedMoneyModel).filter(BorrowedMoneyModel.id == record_id).first()
    if record is None:
        raise HTTPException(status_code=404, detail="Borrowed money record not found")
    return record


@router.post("/", response_model=BorrowedMoney, status_code=status.HTTP_201_CREATED)
def create_borrowed_money(entry: BorrowedMoneyCreate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    record = BorrowedMoneyModel(**entry.model_dump(), admin_id=user["user_id"], created_by=get_user_identifier(user))
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"Borrowed {record.borrowed_money} from {record.borrowed_from}, recorded by {get_user_identifier(user)}")
    return record


@router.get("/", response_model=List[BorrowedMoney])
def read_borrowed_money(db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    return db.query(BorrowedMoneyModel).order_by(BorrowedMoneyModel.borrowed_on.desc()).all()


@router.get("/{record_id}", response_model=BorrowedMoney)
def read_borrowed_money_entry(record_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    return _get_or_404(db, record_id)


@router.patch("/{record_id}", response_model=BorrowedMoney)
def update_borrowed_money(
    record_id: int,
    entry: BorrowedMoneyUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    record = _get_or_404(db, record_id)
    for key, value in entry.model_dump(exclude_unset=True).items():
        setattr(record, key, value)
    record.updated_by = get_user_identifier(user)
    db.commit()
    db.refresh(record)
    return record


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_borrowed_money(record_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    record = _get_or_404(db, record_id)
    db.delete(record)
    db.commit()
