from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from crud.reports import get_history
from database import get_db
from models.companies import Company as CompanyModel
from schemas.audit_log import AuditLogCreate
from schemas.companies import Company, CompanyCreate, CompanyUpdate
from schemas.transactions import Transaction
from utils import sqlalchemy_to_dict
from utils.auth_utils import get_current_user, get_user_identifier, require_admin
from utils.timeutils import now

router = APIRouter(prefix="/companies", tags=["Companies"])
logger = logging.getLogger("companies")


def _get_or_404(db: Session, company_id: int) -> CompanyModel:
    db_company = db.query(CompanyModel).filter(CompanyModel.id == company_id).first()
    if db_company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return db_company


def _ensure_unique_name(db: Session, name: str, company_id: int = None):
    query = db.query(CompanyModel).filter(CompanyModel.name == name).execution_options(include_deleted=True)
    if company_id is not None:
        query = query.filter(CompanyModel.id != company_id)
    if query.first():
        raise HTTPException(status_code=400, detail=f"Company '{name}' already exists")


@router.post("/", response_model=Company, status_code=status.HTTP_201_CREATED)
def create_company(company: CompanyCreate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    _ensure_unique_name(db, company.name)
    db_company = CompanyModel(**company.model_dump(), created_by=get_user_identifier(user))
    db.add(db_company)
    db.commit()
    db.refresh(db_company)
    logger.info(f"Company '{db_company.name}' created by user {get_user_identifier(user)}")
    return db_company


@router.get("/", response_model=List[Company])
def read_companies(skip: int = 0, limit: int = 100, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return db.query(CompanyModel).order_by(CompanyModel.name).offset(skip).limit(limit).all()


@router.get("/{company_id}", response_model=Company)
def read_company(company_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return _get_or_404(db, company_id)


@router.get("/{company_id}/history", response_model=List[Transaction])
def read_company_history(
    company_id: int,
    days: int = Query(30, ge=1, le=366),
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    _get_or_404(db, company_id)
    return get_history(db, days, company_id=company_id)


@router.patch("/{company_id}", response_model=Company)
def update_company(
    company_id: int,
    company: CompanyUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    db_company = _get_or_404(db, company_id)
    updates = company.model_dump(exclude_unset=True)
    if updates.get("name"):
        _ensure_unique_name(db, updates["name"], company_id)

    old_values = sqlalchemy_to_dict(db_company)
    for key, value in updates.items():
        setattr(db_company, key, value)
    db_company.updated_at = now()
    db_company.updated_by = get_user_identifier(user)

    create_audit_log(db=db, log_entry=AuditLogCreate(
        table_name='companies',
        record_id=company_id,
        changed_by=get_user_identifier(user),
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_company)
    ))
    db.commit()
    db.refresh(db_company)
    return db_company


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_company(company_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    db_company = _get_or_404(db, company_id)
    old_values = sqlalchemy_to_dict(db_company)
    db_company.deleted_at = now()
    db_company.deleted_by = get_user_identifier(user)

    create_audit_log(db=db, log_entry=AuditLogCreate(
        table_name='companies',
        record_id=company_id,
        changed_by=get_user_identifier(user),
        action='DELETE',
        old_values=old_values,
        new_values={}
    ))
    db.commit()
    logger.info(f"Company '{db_company.name}' (ID: {company_id}) deleted by user {get_user_identifier(user)}")
