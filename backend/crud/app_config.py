from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional
import logging

from sqlalchemy.orm import Session

from models.app_config import AppConfig
from schemas.app_config import AppConfigCreate, AppConfigUpdate
from crud.audit_log import create_audit_log
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict
from utils.timeutils import now

logger = logging.getLogger("app_config")


def create_config(db: Session, config: AppConfigCreate, user_id: str):
    db_config = AppConfig(name=config.name, value=config.value, created_by=user_id)
    db.add(db_config)
    db.flush()

    log_entry = AuditLogCreate(
        table_name='app_config',
        record_id=db_config.id,
        changed_by=user_id,
        action='CREATE',
        old_values={},
        new_values=sqlalchemy_to_dict(db_config)
    )
    create_audit_log(db, log_entry)
    db.commit()
    db.refresh(db_config)
    return db_config


# Get config by name (or all configs)
def get_config(db: Session, name: str = None):
    if name:
        return db.query(AppConfig).filter(AppConfig.name == name).first()
    return db.query(AppConfig).order_by(AppConfig.name).all()


def update_config_by_name(db: Session, name: str, config: AppConfigUpdate, user_id: str):
    db_config = db.query(AppConfig).filter(AppConfig.name == name).first()
    if not db_config:
        return None

    old_values = sqlalchemy_to_dict(db_config)
    for field, value in config.model_dump(exclude_unset=True).items():
        setattr(db_config, field, value)
    db_config.updated_at = now()
    db_config.updated_by = user_id

    log_entry = AuditLogCreate(
        table_name='app_config',
        record_id=db_config.id,
        changed_by=user_id,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_config)
    )
    create_audit_log(db, log_entry)
    db.commit()
    db.refresh(db_config)
    return db_config


def get_decimal_setting(db: Session, name: str, default: Decimal) -> Decimal:
    """Read a numeric setting, falling back to `default` when unset or malformed."""
    db_config = get_config(db, name=name)
    if db_config is None:
        return default
    try:
        return Decimal(db_config.value)
    except (InvalidOperation, TypeError):
        logger.warning(f"Config '{name}' has non-numeric value '{db_config.value}', using {default}")
        return default


def get_date_setting(db: Session, name: str) -> Optional[date]:
    """Read an ISO date setting; None when unset or malformed."""
    db_config = get_config(db, name=name)
    if db_config is None:
        return None
    try:
        return date.fromisoformat(db_config.value)
    except (ValueError, TypeError):
        logger.warning(f"Config '{name}' has non-date value '{db_config.value}', ignoring it")
        return None
