from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crud import dashboard
from database import get_db
from schemas.dashboard import AdminDashboard, CashFlow, DriverDashboard, ProfitReport
from utils.auth_utils import get_current_user, require_admin
from utils.errors import ValidationFailed
from utils.timeutils import today

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/admin", response_model=AdminDashboard)
def admin_dashboard(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    start_date, end_date = dashboard.get_default_range(start_date, end_date)
    return dashboard.get_admin_dashboard(db, start_date, end_date)


@router.get("/driver", response_model=DriverDashboard)
def driver_dashboard(
    driver_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Today's figures for the calling driver. Admins may look at any driver."""
    if user["role"] != "ADMIN" or driver_id is None:
        driver_id = user["user_id"]
    return dashboard.get_driver_dashboard(db, driver_id)


@router.get("/profit", response_model=ProfitReport)
def profit(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    start_date, end_date = dashboard.get_default_range(start_date, end_date)
    return dashboard.get_profit(db, start_date, end_date)


@router.get("/cash-flow", response_model=CashFlow)
def cash_flow(
    date: Optional[date] = None,
    account: str = "cash",
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    if not account:
        raise ValidationFailed("account is required")
    return dashboard.get_cash_flow(db, date or today(), account)
