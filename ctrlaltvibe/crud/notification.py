from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from ctrlaltvibe.crud.base import CRUDBase
from ctrlaltvibe.models.notification import Notification

class CRUDNotification(CRUDBase[Notification, dict, dict]):
    """CRUD operations for Notifications. Every query is scoped to the recipient."""

    def _for_user(self, db: Session, user_id: int):
        return db.query(self.model).filter(self.model.user_id == user_id)

    def get_for_user(
        self, db: Session, *, user_id: int, skip: int = 0, limit: int = 20, unread_only: bool = False
    ) -> Tuple[List[Notification], int]:
        query = self._for_user(db, user_id)
        if unread_only:
            query = query.filter(self.model.is_read.is_(False))
        total = query.count()
        items = (
            query.options(
                joinedload(self.model.actor),
                joinedload(self.model.project),
                joinedload(self.model.comment),
                joinedload(self.model.reply),
            )
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def get_unread_count(self, db: Session, *, user_id: int) -> int:
        return self._for_user(db, user_id).filter(self.model.is_read.is_(False)).count()

    def get_for_recipient(self, db: Session, *, notification_id: int, user_id: int) -> Optional[Notification]:
        return self._for_user(db, user_id).filter(self.model.id == notification_id).first()

    def mark_as_read(self, db: Session, *, notification_id: int, user_id: int) -> Optional[Notification]:
        notification = self.get_for_recipient(db, notification_id=notification_id, user_id=user_id)
        if notification:
            notification = self.update(db, db_obj=notification, obj_in={"is_read": True})
        return notification

    def mark_all_as_read(self, db: Session, *, user_id: int) -> int:
        updated = (
            self._for_user(db, user_id)
            .filter(self.model.is_read.is_(False))
            .update({"is_read": True}, synchronize_session=False)
        )
        db.commit()
        return updated

    def delete_for_recipient(self, db: Session, *, notification_id: int, user_id: int) -> bool:
        notification = self.get_for_recipient(db, notification_id=notification_id, user_id=user_id)
        if not notification:
            return False
        db.delete(notification)
        db.commit()
        return True

notification = CRUDNotification(Notification)
