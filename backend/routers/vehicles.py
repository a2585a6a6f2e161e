from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models.transactions import Transaction as TransactionModel
from models.users import User
from models.vehicles import Vehicle as VehicleModel
from schemas.vehicles import Vehicle, VehicleCreate, VehicleUpdate
from utils.auth_utils import get_current_user, get_user_identifier, require_admin

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])
logger = logging.getLogger("vehicles")


def _get_or_404(db: Session, vehicle_id: int) -> VehicleModel:
    db_vehicle = db.query(VehicleModel).filter(VehicleModel.id == vehicle_id).first()
    if db_vehicle is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return db_vehicle


def _ensure_unique_registration(db: Session, registration: str, vehicle_id: int = None):
    query = db.query(VehicleModel).filter(VehicleModel.registration == registration)
    if vehicle_id is not None:
        query = query.filter(VehicleModel.id != vehicle_id)
    if query.first():
        raise HTTPException(status_code=400, detail=f"Vehicle '{registration}' already exists")


@router.post("/", response_model=Vehicle, status_code=status.HTTP_201_CREATED)
def create_vehicle(vehicle: VehicleCreate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    _ensure_unique_registration(db, vehicle.registration)
    db_vehicle = VehicleModel(**vehicle.model_dump(), created_by=get_user_identifier(user))
    db.add(db_vehicle)
    db.commit()
    db.refresh(db_vehicle)
    logger.info(f"Vehicle {db_vehicle.registration} added by user {get_user_identifier(user)}")
    return db_vehicle


@router.get("/", response_model=List[Vehicle])
def read_vehicles(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return db.query(VehicleModel).order_by(VehicleModel.registration).all()


@router.get("/{vehicle_id}", response_model=Vehicle)
def read_vehicle(vehicle_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return _get_or_404(db, vehicle_id)


@router.patch("/{vehicle_id}", response_model=Vehicle)
def update_vehicle(
    vehicle_id: int,
    vehicle: VehicleUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_admin),
):
    db_vehicle = _get_or_404(db, vehicle_id)
    updates = vehicle.model_dump(exclude_unset=True)
    if updates.get("registration"):
        updates["registration"] = updates["registration"].strip().upper()
        _ensure_unique_registration(db, updates["registration"], vehicle_id)
    for key, value in updates.items():
        setattr(db_vehicle, key, value)
    db_vehicle.updated_by = get_user_identifier(user)
    db.commit()
    db.refresh(db_vehicle)
    return db_vehicle


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vehicle(vehicle_id: int, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    db_vehicle = _get_or_404(db, vehicle_id)
    in_use = db.query(TransactionModel.id).filter(
        TransactionModel.vehicle_id == vehicle_id
    ).execution_options(include_deleted=True).first()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle has fuel entries and cannot be deleted",
        )
    db.query(User).filter(User.vehicle_id == vehicle_id).update({User.vehicle_id: None}, synchronize_session=False)
    db.delete(db_vehicle)
    db.commit()
    logger.info(f"Vehicle {db_vehicle.registration} (ID: {vehicle_id}) deleted by user {get_user_identifier(user)}")
