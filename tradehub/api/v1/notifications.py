"""In-app notification endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationResponse,
    UnreadCountResponse,
)
from tradehub.api.dependencies import get_current_user_id
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.database.repositories import NotificationRepository

router = APIRouter()


@router.get("/notifications", response_model=List[NotificationResponse])
def list_notifications(
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return NotificationRepository(db).list_by_user(user_id, unread_only=unread_only)


@router.post("/notifications", response_model=NotificationResponse, status_code=201)
def create_notification(
    request_body: NotificationCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    notification = NotificationRepository(db).create(user_id, **request_body.model_dump())
    db.commit()
    return notification


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
def unread_count(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return UnreadCountResponse(unread=NotificationRepository(db).unread_count(user_id))


@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    updated = NotificationRepository(db).mark_all_as_read(user_id)
    db.commit()
    return MarkAllReadResponse(updated=updated)


@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    repo = NotificationRepository(db)
    notification = repo.get(user_id, notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    repo.mark_as_read(notification)
    db.commit()
    return notification
