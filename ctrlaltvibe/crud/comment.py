from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from ctrlaltvibe.crud.base import CRUDBase
from ctrlaltvibe.models.comment import Comment, CommentReply
from ctrlaltvibe.models.engagement import Like
from ctrlaltvibe.schemas.project import CommentCreate

class CRUDComment(CRUDBase[Comment, CommentCreate, CommentCreate]):
    def get_for_project(self, db: Session, *, project_id: int) -> List[Comment]:
        return (
            db.query(self.model)
            .options(joinedload(self.model.author), selectinload(self.model.replies).joinedload(CommentReply.author))
            .filter(self.model.project_id == project_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .all()
        )

    def create_for_project(self, db: Session, *, project_id: int, author_id: int, content: str) -> Comment:
        return self.create(db, obj_in={"project_id": project_id, "author_id": author_id, "content": content})

    def get_reply(self, db: Session, *, reply_id: int) -> Optional[CommentReply]:
        return db.query(CommentReply).filter(CommentReply.id == reply_id).first()

    def create_reply(self, db: Session, *, comment_id: int, author_id: int, content: str) -> CommentReply:
        reply = CommentReply(comment_id=comment_id, author_id=author_id, content=content)
        db.add(reply)
        db.commit()
        db.refresh(reply)
        return reply

    def remove(self, db: Session, *, db_obj: Comment) -> None:
        """Delete a comment with its replies and the likes on both."""
        reply_ids = [reply.id for reply in db_obj.replies]
        like_filter = Like.comment_id == db_obj.id
        if reply_ids:
            like_filter = or_(like_filter, Like.reply_id.in_(reply_ids))
        db.query(Like).filter(like_filter).delete(synchronize_session=False)
        db.delete(db_obj)
        db.commit()

    # Likes on comments and replies

    def likes_count(self, db: Session, *, comment_id: Optional[int] = None, reply_id: Optional[int] = None) -> int:
        return db.query(func.count(Like.id)).filter(*self._like_filter(comment_id, reply_id)).scalar() or 0

    def is_liked(self, db: Session, *, user_id: Optional[int], comment_id: Optional[int] = None, reply_id: Optional[int] = None) -> bool:
        if not user_id:
            return False
        return db.query(Like.id).filter(*self._like_filter(comment_id, reply_id), Like.user_id == user_id).first() is not None

    def like(self, db: Session, *, user_id: int, comment_id: Optional[int] = None, reply_id: Optional[int] = None) -> bool:
        """Returns False when the like already existed."""
        if self.is_liked(db, user_id=user_id, comment_id=comment_id, reply_id=reply_id):
            return False
        db.add(Like(user_id=user_id, comment_id=comment_id, reply_id=reply_id))
        db.commit()
        return True

    def unlike(self, db: Session, *, user_id: int, comment_id: Optional[int] = None, reply_id: Optional[int] = None) -> bool:
        deleted = (
            db.query(Like)
            .filter(*self._like_filter(comment_id, reply_id), Like.user_id == user_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted > 0

    @staticmethod
    def _like_filter(comment_id: Optional[int], reply_id: Optional[int]):
        if reply_id is not None:
            return [Like.reply_id == reply_id]
        return [Like.comment_id == comment_id, Like.reply_id.is_(None)]

comment = CRUDComment(Comment)
