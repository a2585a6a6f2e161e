from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.app_config import AppConfigCreate, AppConfigUpdate, AppConfigOut
from crud import app_config as crud_app_config
from models.app_config import AppConfig as AppConfigModel
from utils.auth_utils import get_current_user, get_user_identifier, require_admin

router = APIRouter(prefix="/configurations", tags=["Configurations"])
logger = logging.getLogger("app_config")


DEFAULT_CONFIGS = [
    {"name": "system_start_date", "value": "2024-01-01"},
    {"name": "STOCK_TOLERANCE", "value": "0.1"},
]


@router.post("/", response_model=AppConfigOut, status_code=status.HTTP_201_CREATED)
def create_config(config: AppConfigCreate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    if crud_app_config.get_config(db, name=config.name):
        raise HTTPException(status_code=400, detail=f"Configuration '{config.name}' already exists")
    return crud_app_config.create_config(db, config, user_id=get_user_identifier(user))


@router.get("/", response_model=List[AppConfigOut])
def get_configs(name: Optional[str] = None, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    configs = crud_app_config.get_config(db, name=name)
    # Always return a list, even if empty
    if name:
        return [configs] if configs else []
    return configs


@router.patch("/{name}", response_model=AppConfigOut)
def update_config(name: str, config: AppConfigUpdate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    updated = crud_app_config.update_config_by_name(db, name, config, user_id=get_user_identifier(user))
    if not updated:
        raise HTTPException(status_code=404, detail="Configuration not found")
    logger.info(f"Configuration '{name}' set to '{updated.value}' by user {get_user_identifier(user)}")
    return updated


@router.post("/initialize", status_code=status.HTTP_201_CREATED)
def initialize_configurations(db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    """
    Seeds the default application configurations.
    This is idempotent; it will not overwrite existing configurations.
    """
    existing_config_names = {name for (name,) in db.query(AppConfigModel.name)}

    new_configs_created = []
    for config_data in DEFAULT_CONFIGS:
        if config_data["name"] not in existing_config_names:
            crud_app_config.create_config(db, AppConfigCreate(**config_data), user_id=get_user_identifier(user))
            new_configs_created.append(config_data["name"])

    if not new_configs_created:
        return {"message": "All default configurations already exist.", "new_configs": []}

    logger.info(f"Initialized default configs by user {get_user_identifier(user)}. New configs: {new_configs_created}")
    return {"message": "Successfully initialized default configurations.", "new_configs": new_configs_created}
