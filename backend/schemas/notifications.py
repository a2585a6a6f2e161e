from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class NotificationCreate(BaseModel):
    message: str
    user_id: Optional[int] = None


class Notification(BaseModel):
    id: int
    message: str
    date: datetime
    is_read: bool
    user_id: Optional[int] = None

    class Config:
        from_attributes = True
