from datetime import datetime, timezone
from typing import List, Optional, Tuple
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ctrlaltvibe.core.constants import NotificationTypeEnum
from ctrlaltvibe.crud.notification import notification as crud_notification
from ctrlaltvibe.models.comment import Comment, CommentReply
from ctrlaltvibe.models.notification import Notification
from ctrlaltvibe.models.project import Project
from ctrlaltvibe.models.user import User
from ctrlaltvibe.realtime.registry import NotificationDelivery
from ctrlaltvibe.schemas.notification import (
    ActorSummary,
    ContentSummary,
    NotificationEvent,
    ProjectSummary,
    notification_event_adapter,
    preview,
)

logger = logging.getLogger(__name__)

class NotificationService:
    async def notify(
        self,
        db: Session,
        delivery: Optional[NotificationDelivery],
        *,
        recipient_id: int,
        actor: User,
        notification_type: NotificationTypeEnum,
        project: Optional[Project] = None,
        comment: Optional[Comment] = None,
        reply: Optional[CommentReply] = None,
    ) -> Optional[Notification]:
        """Record a notification for ``recipient_id`` and push it to their live connections.

        Self-triggered actions produce nothing. The primary mutation has already
        been committed when this runs, so failures here are logged, never raised.
        """
        if recipient_id == actor.id:
            logger.debug(f"Skipping {notification_type.value} notification: user {actor.id} acted on own content")
            return None

        try:
            record = crud_notification.create(
                db,
                obj_in={
                    "user_id": recipient_id,
                    "actor_id": actor.id,
                    "type": notification_type.value,
                    "project_id": project.id if project else None,
                    "comment_id": comment.id if comment else None,
                    "reply_id": reply.id if reply else None,
                },
            )
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to record {notification_type.value} notification for user {recipient_id}: {e}", exc_info=True)
            return None

        if delivery is None:
            return record

        try:
            event = self.build_event(record, actor=actor, project=project, comment=comment, reply=reply)
            await delivery.deliver(recipient_id, event)
        except Exception as e:
            logger.warning(f"Real-time push of notification {record.id} to user {recipient_id} failed: {e}")

        return record

    def build_event(
        self,
        record: Notification,
        *,
        actor: Optional[User] = None,
        project: Optional[Project] = None,
        comment: Optional[Comment] = None,
        reply: Optional[CommentReply] = None,
    ) -> NotificationEvent:
        actor = actor or record.actor
        project = project or record.project
        comment = comment or record.comment
        reply = reply or record.reply

        payload = {
            "id": record.id,
            "type": record.type,
            "user_id": record.user_id,
            "actor": ActorSummary.model_validate(actor) if actor else None,
            "is_read": bool(record.is_read),
            "created_at": record.created_at or datetime.now(timezone.utc),
        }
        if project is not None:
            payload["project"] = ProjectSummary.model_validate(project)
        if comment is not None:
            payload["comment"] = ContentSummary(id=comment.id, content=preview(comment.content))
        if reply is not None:
            payload["reply"] = ContentSummary(id=reply.id, content=preview(reply.content))
        return notification_event_adapter.validate_python(payload)

    def get_user_notifications(
        self, db: Session, *, user_id: int, skip: int = 0, limit: int = 20, unread_only: bool = False
    ) -> Tuple[List[NotificationEvent], int]:
        records, total = crud_notification.get_for_user(db, user_id=user_id, skip=skip, limit=limit, unread_only=unread_only)
        events = []
        for record in records:
            try:
                events.append(self.build_event(record))
            except ValidationError as e:
                # The referenced comment or project has since been removed
                logger.warning(f"Skipping notification {record.id} with dangling references: {e.error_count()} errors")
        return events, total

    def get_unread_count(self, db: Session, *, user_id: int) -> int:
        return crud_notification.get_unread_count(db, user_id=user_id)

    def mark_notification_as_read(self, db: Session, *, notification_id: int, user_id: int) -> Optional[Notification]:
        return crud_notification.mark_as_read(db, notification_id=notification_id, user_id=user_id)

    def mark_all_notifications_as_read(self, db: Session, *, user_id: int) -> int:
        return crud_notification.mark_all_as_read(db, user_id=user_id)

    def delete_notification(self, db: Session, *, notification_id: int, user_id: int) -> bool:
        return crud_notification.delete_for_recipient(db, notification_id=notification_id, user_id=user_id)

notification_service = NotificationService()
