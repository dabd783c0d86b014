from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ctrlaltvibe.models.user import User
from ctrlaltvibe.schemas.notification import NotificationList, UnreadCount
from ctrlaltvibe.schemas.response import APIResponse
from ctrlaltvibe.services.notification import notification_service
from ctrlaltvibe.utils import deps

router = APIRouter()

@router.get("", response_model=APIResponse[NotificationList])
async def get_my_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = False,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user),
):
    """Durable notification history; clients refetch this when a push arrives or on poll."""
    events, total = notification_service.get_user_notifications(
        db, user_id=user.id, skip=offset, limit=limit, unread_only=unread_only
    )
    return APIResponse(message="Notifications fetched successfully", data=NotificationList(notifications=events, total=total))

@router.get("/count", response_model=APIResponse[UnreadCount])
async def get_unread_notifications_count(
    db: Session = Depends(deps.get_db),
    user: Optional[User] = Depends(deps.get_optional_user),
):
    # Anonymous visitors poll this too; they simply have nothing unread.
    count = notification_service.get_unread_count(db, user_id=user.id) if user else 0
    return APIResponse(message="Unread notifications count fetched successfully", data=UnreadCount(count=count))

@router.patch("/{notification_id}", response_model=APIResponse[None])
async def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user),
):
    notification = notification_service.mark_notification_as_read(db, notification_id=notification_id, user_id=user.id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return APIResponse(message="Notification marked as read")

@router.patch("", response_model=APIResponse[UnreadCount])
async def mark_all_notifications_as_read(
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user),
):
    updated = notification_service.mark_all_notifications_as_read(db, user_id=user.id)
    return APIResponse(message=f"{updated} notifications marked as read", data=UnreadCount(count=0))

@router.delete("/{notification_id}", response_model=APIResponse[None])
async def delete_notification(
    notification_id: int,
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user),
):
    if not notification_service.delete_notification(db, notification_id=notification_id, user_id=user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return APIResponse(message="Notification deleted")
