from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.constants import NotificationTypeEnum
from ctrlaltvibe.crud.comment import comment as crud_comment
from ctrlaltvibe.models.comment import Comment, CommentReply
from ctrlaltvibe.models.user import User
from ctrlaltvibe.realtime.registry import NotificationDelivery
from ctrlaltvibe.services.cache_service import cache_service
from ctrlaltvibe.services.notification import notification_service
from ctrlaltvibe.services.project import project_service

logger = logging.getLogger(__name__)

class CommentService:
    def _get_comment_or_404(self, db: Session, comment_id: int, viewer: Optional[User] = None) -> Comment:
        comment = crud_comment.get(db, id=comment_id)
        if not comment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
        # Comments on a private project are as hidden as the project
        project_service._get_or_404(db, comment.project_id, viewer)
        return comment

    def _get_reply_or_404(self, db: Session, reply_id: int, viewer: Optional[User] = None) -> CommentReply:
        reply = crud_comment.get_reply(db, reply_id=reply_id)
        if not reply:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reply not found")
        project_service._get_or_404(db, reply.comment.project_id, viewer)
        return reply

    async def like_comment(
        self, db: Session, delivery: Optional[NotificationDelivery], *, comment_id: int, user: User
    ) -> Dict[str, Any]:
        comment = self._get_comment_or_404(db, comment_id, user)

        created = crud_comment.like(db, user_id=user.id, comment_id=comment.id)
        if created:
            await notification_service.notify(
                db, delivery,
                recipient_id=comment.author_id,
                actor=user,
                notification_type=NotificationTypeEnum.LIKE_COMMENT,
                project=comment.project,
                comment=comment,
            )

        return {"liked": True, "likes_count": crud_comment.likes_count(db, comment_id=comment.id)}

    async def unlike_comment(self, db: Session, *, comment_id: int, user: User) -> Dict[str, Any]:
        comment = self._get_comment_or_404(db, comment_id, user)
        crud_comment.unlike(db, user_id=user.id, comment_id=comment.id)
        return {"liked": False, "likes_count": crud_comment.likes_count(db, comment_id=comment.id)}

    async def create_reply(
        self, db: Session, delivery: Optional[NotificationDelivery], *, comment_id: int, content: str, user: User
    ) -> Dict[str, Any]:
        comment = self._get_comment_or_404(db, comment_id, user)

        reply = crud_comment.create_reply(db, comment_id=comment.id, author_id=user.id, content=content)
        logger.info(f"Reply {reply.id} added to comment {comment.id} by user {user.id}")

        await notification_service.notify(
            db, delivery,
            recipient_id=comment.author_id,
            actor=user,
            notification_type=NotificationTypeEnum.REPLY_COMMENT,
            project=comment.project,
            comment=comment,
            reply=reply,
        )

        return project_service.serialize_reply(db, reply, user.id)

    async def like_reply(self, db: Session, *, reply_id: int, user: User) -> Dict[str, Any]:
        reply = self._get_reply_or_404(db, reply_id, user)
        crud_comment.like(db, user_id=user.id, reply_id=reply.id)
        return {"liked": True, "likes_count": crud_comment.likes_count(db, reply_id=reply.id)}

    async def unlike_reply(self, db: Session, *, reply_id: int, user: User) -> Dict[str, Any]:
        reply = self._get_reply_or_404(db, reply_id, user)
        crud_comment.unlike(db, user_id=user.id, reply_id=reply.id)
        return {"liked": False, "likes_count": crud_comment.likes_count(db, reply_id=reply.id)}

    async def delete_comment(self, db: Session, cache: Optional[TaggedCache], *, comment_id: int, user: User) -> None:
        """Moderator removal. Private projects do not hide comments from admins."""
        comment = crud_comment.get(db, id=comment_id)
        if not comment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")

        featured = bool(comment.project.featured) if comment.project else False
        crud_comment.remove(db, db_obj=comment)
        logger.info(f"Comment {comment_id} deleted by admin {user.id}")

        cache_service.invalidate_for(cache, "comment_deleted", featured=featured)

comment_service = CommentService()
