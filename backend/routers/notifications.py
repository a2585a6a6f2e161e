from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.notifications import Notification as NotificationModel
from schemas.notifications import Notification, NotificationCreate
from utils.auth_utils import get_current_user, require_admin

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _visible_to(user: dict):
    # Broadcasts (no user_id) are visible to everyone
    return or_(NotificationModel.user_id.is_(None), NotificationModel.user_id == user["user_id"])


def _get_or_404(db: Session, notification_id: int, user: dict) -> NotificationModel:
    notification = db.query(NotificationModel).filter(
        NotificationModel.id == notification_id, _visible_to(user)
    ).first()
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.post("/", response_model=Notification, status_code=status.HTTP_201_CREATED)
def create_notification(notification: NotificationCreate, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
    db_notification = NotificationModel(**notification.model_dump())
    db.add(db_notification)
    db.commit()
    db.refresh(db_notification)
    return db_notification


@router.get("/", response_model=List[Notification])
def read_notifications(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Unread first, newest first within each group."""
    return db.query(NotificationModel).filter(_visible_to(user)).order_by(
        NotificationModel.is_read, NotificationModel.date.desc()
    ).all()


@router.patch("/read-all")
def mark_all_read(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    updated = db.query(NotificationModel).filter(
        _visible_to(user), NotificationModel.is_read.is_(False)
    ).update({NotificationModel.is_read: True}, synchronize_session=False)
    db.commit()
    return {"updated": updated}


@router.patch("/{notification_id}/read", response_model=Notification)
def mark_read(notification_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    notification = _get_or_404(db, notification_id, user)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(notification_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    notification = _get_or_404(db, notification_id, user)
    db.delete(notification)
    db.commit()
