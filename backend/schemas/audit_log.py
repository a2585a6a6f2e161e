from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel


class AuditLogCreate(BaseModel):
    table_name: str
    record_id: int
    changed_by: str
    action: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None


class AuditLog(AuditLogCreate):
    id: int
    changed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
