"""
Notifications API Routes - the caller's inbox
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import get_current_user
from woodflow.models import User
from woodflow.schemas import NotificationResponse, UnreadCount, MessageResponse
from woodflow.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Latest 50 notifications"""
    return NotificationService(db).list_for_user(current_user.id, unread_only)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"unread": NotificationService(db).unread_count(current_user.id)}


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_read(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    updated = NotificationService(db).mark_all_read(current_user.id)
    db.commit()
    return {"message": f"{updated} notification(s) marked as read"}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(notification_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    notification = NotificationService(db).mark_read(notification_id, current_user.id)
    db.commit()
    return notification


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    NotificationService(db).delete(notification_id, current_user.id)
    db.commit()
    return {"message": "Notification deleted"}
