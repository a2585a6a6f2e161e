from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crud.reports import get_driver_daily_report
from database import get_db
from schemas.reports import DriverDailyReport
from utils.auth_utils import get_current_user
from utils.errors import PermissionDenied
from utils.timeutils import today

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/driver/{driver_id}", response_model=DriverDailyReport)
def driver_daily_report(
    driver_id: int,
    date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    if user["role"] != "ADMIN" and user["user_id"] != driver_id:
        raise PermissionDenied("You can only view your own report")
    return get_driver_daily_report(db, driver_id, date or today())
