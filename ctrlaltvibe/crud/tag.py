from typing import List, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from ctrlaltvibe.crud.base import CRUDBase
from ctrlaltvibe.models.project import Tag, project_tags_association

class CRUDTag(CRUDBase[Tag, dict, dict]):
    def get_by_name(self, db: Session, *, name: str):
        return db.query(self.model).filter(func.lower(self.model.name) == name.strip().lower()).first()

    def get_or_create_many(self, db: Session, *, names: List[str]) -> List[Tag]:
        tags = []
        seen = set()
        for name in names:
            clean = name.strip()
            if not clean or clean.lower() in seen:
                continue
            seen.add(clean.lower())
            tag = self.get_by_name(db, name=clean)
            if not tag:
                tag = Tag(name=clean)
                db.add(tag)
                db.flush()
            tags.append(tag)
        return tags

    def get_all(self, db: Session) -> List[Tag]:
        return db.query(self.model).order_by(self.model.name.asc()).all()

    def get_popular(self, db: Session, *, limit: int = 5) -> List[Tuple[Tag, int]]:
        usage = func.count(project_tags_association.c.project_id).label("usage")
        return (
            db.query(self.model, usage)
            .join(project_tags_association, project_tags_association.c.tag_id == self.model.id)
            .group_by(self.model.id)
            .order_by(usage.desc(), self.model.name.asc())
            .limit(limit)
            .all()
        )

tag = CRUDTag(Tag)
