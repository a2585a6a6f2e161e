from datetime import date
from decimal import Decimal
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from crud import ledger
from database import get_db, transaction_scope
from models.expenses import Expense as ExpenseModel, ExpenseType
from models.transactions import Transaction as TransactionModel
from schemas.expenses import Expense, ExpenseCreate, ExpenseSummary, ExpenseUpdate
from schemas.transactions import TransactionEdit
from utils import to_decimal
from utils.auth_utils import get_current_user, get_user_identifier
from utils.errors import EntityNotFound, PermissionDenied
from utils.timeutils import range_bounds

router = APIRouter(prefix="/expenses", tags=["Expenses"])
logger = logging.getLogger("expenses")


def _expense_query(db: Session, user: dict, start_date: Optional[date], end_date: Optional[date]):
    query = db.query(ExpenseModel)
    if user["role"] != "ADMIN":
        query = query.filter(ExpenseModel.driver_id == user["user_id"])
    if start_date or end_date:
        start, end = range_bounds(start_date or end_date, end_date or start_date)
        query = query.filter(ExpenseModel.date >= start, ExpenseModel.date < end)
    return query


def _get_expense(db: Session, expense_id: int, user: dict) -> ExpenseModel:
    expense = db.query(ExpenseModel).filter(ExpenseModel.id == expense_id).first()
    if expense is None:
        raise EntityNotFound(f"Expense {expense_id} not found", code="EXPENSE_NOT_FOUND")
    if user["role"] != "ADMIN" and expense.driver_id != user["user_id"]:
        raise PermissionDenied("You can only access your own expenses")
    return expense


def _mirror_id(db: Session, expense_id: int) -> int:
    mirror = db.query(TransactionModel.id).filter(
        TransactionModel.expense_id == expense_id,
        TransactionModel.deleted_at.is_(None),
    ).first()
    if mirror is None:
        raise EntityNotFound(f"No ledger entry found for expense {expense_id}", code="TRANSACTION_NOT_FOUND")
    return mirror.id


@router.post("/", response_model=Expense, status_code=status.HTTP_201_CREATED)
def create_expense(expense: ExpenseCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    driver_id = expense.driver_id
    if user["role"] != "ADMIN":
        if expense.type == ExpenseType.BANK:
            raise PermissionDenied("Only admins can record bank expenses")
        driver_id = user["user_id"]

    db_expense = ExpenseModel(
        type=expense.type,
        amount=ledger.money(expense.amount),
        category=expense.category,
        description=expense.description,
        bank_id=expense.bank_id if expense.type == ExpenseType.BANK else None,
        driver_id=driver_id,
        created_by=get_user_identifier(user),
    )
    if expense.date is not None:
        db_expense.date = expense.date
    with transaction_scope(db):
        ledger.record_expense(db, db_expense, user)
    db.refresh(db_expense)
    logger.info(f"{db_expense.type.value} expense {db_expense.id} of {db_expense.amount} recorded by {get_user_identifier(user)}")
    return db_expense


@router.get("/", response_model=List[Expense])
def read_expenses(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    query = _expense_query(db, user, start_date, end_date)
    return query.order_by(ExpenseModel.date.desc(), ExpenseModel.id.desc()).offset(skip).limit(limit).all()


@router.get("/summary", response_model=ExpenseSummary)
def read_expense_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    expenses = _expense_query(db, user, start_date, end_date).all()
    cash_total = sum((to_decimal(e.amount) for e in expenses if e.type == ExpenseType.CASH), Decimal("0"))
    bank_total = sum((to_decimal(e.amount) for e in expenses if e.type == ExpenseType.BANK), Decimal("0"))
    return ExpenseSummary(cash_total=cash_total, bank_total=bank_total, total=cash_total + bank_total, count=len(expenses))


@router.get("/{expense_id}", response_model=Expense)
def read_expense(expense_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return _get_expense(db, expense_id, user)


@router.patch("/{expense_id}", response_model=Expense)
def update_expense(
    expense_id: int,
    expense: ExpenseUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Change the amount or description; the money moves by the difference only."""
    db_expense = _get_expense(db, expense_id, user)
    updates = expense.model_dump(exclude_unset=True)
    edit = {}
    if "amount" in updates:
        edit["total_amount"] = updates["amount"]
    if "description" in updates:
        edit["details"] = updates["description"]
    changes = TransactionEdit(**edit)

    with transaction_scope(db):
        ledger.edit_transaction(db, _mirror_id(db, expense_id), changes, user)
    db.refresh(db_expense)
    return db_expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(expense_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    _get_expense(db, expense_id, user)
    with transaction_scope(db):
        ledger.delete_transaction(db, _mirror_id(db, expense_id), user)
    logger.info(f"Expense {expense_id} deleted by {get_user_identifier(user)}")
