from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.payments import Payment as PaymentModel
from models.transactions import Transaction as TransactionModel, TransactionType
from schemas.payments import Payment
from schemas.transactions import PartyKind, Transaction
from utils.auth_utils import require_admin

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("/", response_model=List[Payment])
def read_payments(
    party_kind: Optional[PartyKind] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """Payments made to customers or companies."""
    query = db.query(PaymentModel)
    if party_kind == PartyKind.CUSTOMER:
        query = query.filter(PaymentModel.customer_id.isnot(None))
    elif party_kind == PartyKind.COMPANY:
        query = query.filter(PaymentModel.company_id.isnot(None))
    elif party_kind == PartyKind.DRIVER:
        return []
    return query.order_by(PaymentModel.date.desc(), PaymentModel.id.desc()).offset(skip).limit(limit).all()


@router.get("/received", response_model=List[Transaction])
def read_received_payments(
    party_kind: Optional[PartyKind] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    """RECEIVE_PAYMENT entries, optionally narrowed to one kind of payer."""
    query = db.query(TransactionModel).filter(TransactionModel.type == TransactionType.RECEIVE_PAYMENT)
    if party_kind == PartyKind.CUSTOMER:
        query = query.filter(TransactionModel.customer_id.isnot(None))
    elif party_kind == PartyKind.COMPANY:
        query = query.filter(TransactionModel.company_id.isnot(None))
    elif party_kind == PartyKind.DRIVER:
        query = query.filter(TransactionModel.customer_id.is_(None), TransactionModel.company_id.is_(None))
    return query.order_by(TransactionModel.date.desc(), TransactionModel.id.desc()).offset(skip).limit(limit).all()
