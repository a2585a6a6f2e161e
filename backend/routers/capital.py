import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crud import balances
from database import get_db
from models.total_capital import TotalCapital as TotalCapitalModel
from schemas.total_capital import TotalCapital, TotalCapitalCreate
from utils.auth_utils import get_user_identifier, require_admin
from utils.timeutils import now

router = APIRouter(prefix="/capital", tags=["Capital"])
logger = logging.getLogger("capital")


@router.get("/", response_model=TotalCapital)
def read_capital(db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    """The cash box. todayCash reads as zero once the day it was last moved has passed."""
    capital = balances.get_total_capital(db)
    if balances.roll_over_today_cash(capital):
        db.commit()
        db.refresh(capital)
    return capital


@router.post("/", response_model=TotalCapital, status_code=status.HTTP_201_CREATED)
def create_capital(capital: TotalCapitalCreate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    """Create the cash box record. Its id must then be set as TOTAL_CASH_ID."""
    if db.query(TotalCapitalModel).first():
        raise HTTPException(status_code=400, detail="Total capital record already exists")
    db_capital = TotalCapitalModel(
        total_cash=capital.total_cash,
        today_cash=0,
        cash_last_updated_at=now(),
        created_by=get_user_identifier(user),
    )
    db.add(db_capital)
    db.commit()
    db.refresh(db_capital)
    logger.info(f"Total capital record {db_capital.id} created with {db_capital.total_cash} cash")
    return db_capital
