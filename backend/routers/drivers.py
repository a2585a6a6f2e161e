from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from database import get_db
from models.transactions import Transaction as TransactionModel
from models.users import User, UserRole, UserStatus
from models.vehicles import Vehicle
from schemas.audit_log import AuditLogCreate
from schemas.users import Driver, DriverCreate, DriverUpdate
from utils import sqlalchemy_to_dict
from utils.auth_utils import get_current_user, get_user_identifier, hash_password, require_admin
from utils.timeutils import now

router = APIRouter(prefix="/drivers", tags=["Drivers"])
logger = logging.getLogger("drivers")


def _get_driver_or_404(db: Session, driver_id: int) -> User:
    driver = db.query(User).filter(User.id == driver_id, User.role == UserRole.DRIVER).first()
    if driver is None:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver


def _check_mobile(db: Session, mobile: str, user_id: int = None):
    query = db.query(User).filter(User.mobile == mobile)
    if user_id is not None:
        query = query.filter(User.id != user_id)
    if query.first():
        raise HTTPException(status_code=400, detail="Mobile number already registered")


def _check_vehicle(db: Session, vehicle_id: Optional[int]):
    if vehicle_id is not None and db.query(Vehicle).filter(Vehicle.id == vehicle_id).first() is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")


@router.post("/", response_model=Driver, status_code=status.HTTP_201_CREATED)
def create_driver(driver: DriverCreate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    _check_mobile(db, driver.mobile)
    _check_vehicle(db, driver.vehicle_id)

    db_driver = User(
        name=driver.name,
        mobile=driver.mobile,
        hashed_password=hash_password(driver.password),
        role=UserRole.DRIVER,
        status=UserStatus.ACTIVE,
        base_salary=driver.base_salary,
        vehicle_id=driver.vehicle_id,
        created_by=get_user_identifier(user),
    )
    db.add(db_driver)
    db.commit()
    db.refresh(db_driver)
    logger.info(f"Driver '{db_driver.name}' (ID: {db_driver.id}) created by user {get_user_identifier(user)}")
    return db_driver


@router.get("/", response_model=List[Driver])
def read_drivers(
    status: Optional[UserStatus] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    query = db.query(User).filter(User.role == UserRole.DRIVER)
    if status:
        query = query.filter(User.status == status)
    return query.order_by(User.name).all()


@router.get("/{driver_id}", response_model=Driver)
def read_driver(driver_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    if user["role"] != "ADMIN" and user["user_id"] != driver_id:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return _get_driver_or_404(db, driver_id)


@router.patch("/{driver_id}", response_model=Driver)
def update_driver(
    driver_id: int,
    driver: DriverUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    db_driver = _get_driver_or_404(db, driver_id)
    updates = driver.model_dump(exclude_unset=True)
    if updates.get("mobile"):
        _check_mobile(db, updates["mobile"], driver_id)
    if "vehicle_id" in updates:
        _check_vehicle(db, updates["vehicle_id"])

    old_values = sqlalchemy_to_dict(db_driver)
    old_values.pop("hashed_password", None)
    password = updates.pop("password", None)
    if password:
        db_driver.hashed_password = hash_password(password)
    for key, value in updates.items():
        setattr(db_driver, key, value)
    db_driver.updated_by = get_user_identifier(user)
    db_driver.updated_at = now()

    new_values = sqlalchemy_to_dict(db_driver)
    new_values.pop("hashed_password", None)
    create_audit_log(db=db, log_entry=AuditLogCreate(
        table_name='users',
        record_id=driver_id,
        changed_by=get_user_identifier(user),
        action='UPDATE',
        old_values=old_values,
        new_values=new_values
    ))
    db.commit()
    db.refresh(db_driver)
    logger.info(f"Driver {driver_id} updated by user {get_user_identifier(user)}")
    return db_driver


@router.patch("/{driver_id}/status", response_model=Driver)
def toggle_driver_status(driver_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    """Block an active driver or re-activate a blocked one."""
    db_driver = _get_driver_or_404(db, driver_id)
    db_driver.status = UserStatus.BLOCKED if db_driver.status == UserStatus.ACTIVE else UserStatus.ACTIVE
    db_driver.updated_by = get_user_identifier(user)
    db.commit()
    db.refresh(db_driver)
    logger.info(f"Driver {driver_id} is now {db_driver.status.value}")
    return db_driver


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_driver(driver_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    db_driver = _get_driver_or_404(db, driver_id)
    has_history = db.query(TransactionModel.id).filter(
        (TransactionModel.driver_id == driver_id) | (TransactionModel.transfer_driver_id == driver_id)
    ).execution_options(include_deleted=True).first()
    if has_history:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Driver has transactions; block the account instead",
        )
    db.delete(db_driver)
    db.commit()
    logger.info(f"Driver '{db_driver.name}' (ID: {driver_id}) deleted by user {get_user_identifier(user)}")
