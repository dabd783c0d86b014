from typing import List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ctrlaltvibe.core.constants import RoleEnum
from ctrlaltvibe.crud.base import CRUDBase
from ctrlaltvibe.models.comment import Comment, CommentReply
from ctrlaltvibe.models.engagement import Bookmark, Like, Share
from ctrlaltvibe.models.notification import Notification
from ctrlaltvibe.models.user import User
from ctrlaltvibe.schemas.user import UserCreate

class CRUDUser(CRUDBase[User, UserCreate, dict]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(self.model).filter(self.model.email == email.lower()).first()

    def get_by_username(self, db: Session, *, username: str) -> Optional[User]:
        return db.query(self.model).filter(self.model.username == username).first()

    def get_by_login(self, db: Session, *, login: str) -> Optional[User]:
        return db.query(self.model).filter(
            or_(self.model.username == login, self.model.email == login.lower())
        ).first()

    def get_page(self, db: Session, *, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        query = db.query(self.model)
        total = query.count()
        users = (
            query.order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    def set_role(self, db: Session, *, db_obj: User, role: RoleEnum) -> User:
        return self.update(db, db_obj=db_obj, obj_in={"role": role.value})

    def delete_with_content(self, db: Session, *, db_obj: User) -> None:
        """Delete a user, their projects and every row that names them.

        Shares they made stay counted but become anonymous.
        """
        user_id = db_obj.id
        db.query(Like).filter(Like.user_id == user_id).delete(synchronize_session=False)
        db.query(Bookmark).filter(Bookmark.user_id == user_id).delete(synchronize_session=False)
        db.query(Share).filter(Share.user_id == user_id).update({Share.user_id: None}, synchronize_session=False)
        db.query(Notification).filter(
            or_(Notification.user_id == user_id, Notification.actor_id == user_id)
        ).delete(synchronize_session=False)

        # ORM deletes so replies cascade with their comment
        for reply in db.query(CommentReply).filter(CommentReply.author_id == user_id).all():
            db.delete(reply)
        for comment in db.query(Comment).filter(Comment.author_id == user_id).all():
            db.delete(comment)

        db.delete(db_obj)
        db.commit()

user = CRUDUser(User)
