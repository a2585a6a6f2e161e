from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from crud.reports import get_history
from database import get_db
from models.customers import Customer as CustomerModel
from schemas.audit_log import AuditLogCreate
from schemas.customers import Customer, CustomerCreate, CustomerUpdate
from schemas.transactions import Transaction
from utils import sqlalchemy_to_dict
from utils.auth_utils import get_current_user, get_user_identifier, require_admin
from utils.timeutils import now

router = APIRouter(prefix="/customers", tags=["Customers"])
logger = logging.getLogger("customers")


def _get_or_404(db: Session, customer_id: int) -> CustomerModel:
    db_customer = db.query(CustomerModel).filter(CustomerModel.id == customer_id).first()
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return db_customer


@router.post("/", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(customer: CustomerCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_customer = CustomerModel(**customer.model_dump(), created_by=get_user_identifier(user))
    db.add(db_customer)
    db.commit()
    db.refresh(db_customer)
    logger.info(f"Customer '{db_customer.name}' created by user {get_user_identifier(user)}")
    return db_customer


@router.get("/", response_model=List[Customer])
def read_customers(skip: int = 0, limit: int = 100, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return db.query(CustomerModel).order_by(CustomerModel.name).offset(skip).limit(limit).all()


@router.get("/due", response_model=List[Customer])
def read_customers_with_due(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return db.query(CustomerModel).filter(CustomerModel.balance > 0).order_by(CustomerModel.balance.desc()).all()


@router.get("/{customer_id}", response_model=Customer)
def read_customer(customer_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return _get_or_404(db, customer_id)


@router.get("/{customer_id}/history", response_model=List[Transaction])
def read_customer_history(
    customer_id: int,
    days: int = Query(30, ge=1, le=366),
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    _get_or_404(db, customer_id)
    return get_history(db, days, customer_id=customer_id)


@router.patch("/{customer_id}", response_model=Customer)
def update_customer(
    customer_id: int,
    customer: CustomerUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    db_customer = _get_or_404(db, customer_id)
    old_values = sqlalchemy_to_dict(db_customer)

    for key, value in customer.model_dump(exclude_unset=True).items():
        setattr(db_customer, key, value)
    db_customer.updated_at = now()
    db_customer.updated_by = get_user_identifier(user)

    create_audit_log(db=db, log_entry=AuditLogCreate(
        table_name='customers',
        record_id=customer_id,
        changed_by=get_user_identifier(user),
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_customer)
    ))
    db.commit()
    db.refresh(db_customer)
    logger.info(f"Customer '{db_customer.name}' (ID: {customer_id}) updated by user {get_user_identifier(user)}")
    return db_customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    db_customer = _get_or_404(db, customer_id)
    old_values = sqlalchemy_to_dict(db_customer)

    db_customer.deleted_at = now()
    db_customer.deleted_by = get_user_identifier(user)

    create_audit_log(db=db, log_entry=AuditLogCreate(
        table_name='customers',
        record_id=customer_id,
        changed_by=get_user_identifier(user),
        action='DELETE',
        old_values=old_values,
        new_values={}
    ))
    db.commit()
    logger.info(f"Customer '{db_customer.name}' (ID: {customer_id}) deleted by user {get_user_identifier(user)}")
