from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ctrlaltvibe.models.user import User
from ctrlaltvibe.realtime.registry import NotificationDelivery
from ctrlaltvibe.schemas.project import CommentCreate
from ctrlaltvibe.schemas.response import APIResponse
from ctrlaltvibe.services.comment import comment_service
from ctrlaltvibe.utils import deps

router = APIRouter()

@router.post("/comments/{comment_id}/like", response_model=APIResponse[Dict[str, Any]])
async def like_comment(
    comment_id: int,
    db: Session = Depends(deps.get_db),
    delivery: NotificationDelivery = Depends(deps.get_notification_delivery),
    current_user: User = Depends(deps.get_current_user),
):
    data = await comment_service.like_comment(db, delivery, comment_id=comment_id, user=current_user)
    return APIResponse(message="Comment liked", data=data)

@router.delete("/comments/{comment_id}/like", response_model=APIResponse[Dict[str, Any]])
async def unlike_comment(
    comment_id: int,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
):
    data = await comment_service.unlike_comment(db, comment_id=comment_id, user=current_user)
    return APIResponse(message="Comment unliked", data=data)

@router.post("/comments/{comment_id}/replies", response_model=APIResponse[Dict[str, Any]], status_code=status.HTTP_201_CREATED)
async def reply_to_comment(
    comment_id: int,
    reply_in: CommentCreate,
    db: Session = Depends(deps.get_db),
    delivery: NotificationDelivery = Depends(deps.get_notification_delivery),
    current_user: User = Depends(deps.get_current_user),
):
    data = await comment_service.create_reply(db, delivery, comment_id=comment_id, content=reply_in.content, user=current_user)
    return APIResponse(message="Reply added", data=data)

@router.post("/replies/{reply_id}/like", response_model=APIResponse[Dict[str, Any]])
async def like_reply(
    reply_id: int,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
):
    data = await comment_service.like_reply(db, reply_id=reply_id, user=current_user)
    return APIResponse(message="Reply liked", data=data)

@router.delete("/replies/{reply_id}/like", response_model=APIResponse[Dict[str, Any]])
async def unlike_reply(
    reply_id: int,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
):
    data = await comment_service.unlike_reply(db, reply_id=reply_id, user=current_user)
    return APIResponse(message="Reply unliked", data=data)
