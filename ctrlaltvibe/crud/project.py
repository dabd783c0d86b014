from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from ctrlaltvibe.core.constants import ProjectSortEnum
from ctrlaltvibe.crud.base import CRUDBase
from ctrlaltvibe.crud.tag import tag as crud_tag
from ctrlaltvibe.models.comment import Comment
from ctrlaltvibe.models.engagement import Bookmark, Like, Share
from ctrlaltvibe.models.project import Project, ProjectView, Tag
from ctrlaltvibe.models.user import User
from ctrlaltvibe.schemas.project import ProjectCreate, ProjectUpdate

TRENDING_VIEW_WEIGHT = 0.7
TRENDING_RECENCY_WINDOW_DAYS = 30
TRENDING_RECENCY_POINTS_PER_DAY = 3


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def trending_score(monthly_views: int, created_at: Optional[datetime], now: datetime) -> float:
    age_days = (now - _as_utc(created_at)).total_seconds() / 86400
    recency = (TRENDING_RECENCY_WINDOW_DAYS - age_days) * TRENDING_RECENCY_POINTS_PER_DAY
    return monthly_views * TRENDING_VIEW_WEIGHT + recency


class CRUDProject(CRUDBase[Project, ProjectCreate, ProjectUpdate]):
    def _base_query(self, db: Session):
        return db.query(self.model).options(
            joinedload(self.model.author),
            selectinload(self.model.tags),
        )

    def _visible_to(self, query, current_user_id: Optional[int]):
        if current_user_id:
            return query.filter(or_(self.model.is_private.is_(False), self.model.author_id == current_user_id))
        return query.filter(self.model.is_private.is_(False))

    def get_with_details(self, db: Session, *, project_id: int) -> Optional[Project]:
        return self._base_query(db).filter(self.model.id == project_id).first()

    def get_list(
        self,
        db: Session,
        *,
        page: int = 1,
        limit: int = 6,
        tag: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        username: Optional[str] = None,
        current_user_id: Optional[int] = None,
    ) -> Tuple[List[Project], int]:
        query = self._base_query(db)
        author_id = None

        if username:
            author = db.query(User).filter(User.username == username).first()
            if not author:
                return [], 0
            author_id = author.id
            query = query.filter(self.model.author_id == author_id)

        # Owners see their own private projects when browsing their profile
        if author_id is None or author_id != current_user_id:
            query = self._visible_to(query, current_user_id)

        if tag:
            tag_record = crud_tag.get_by_name(db, name=tag)
            if not tag_record:
                return [], 0
            query = query.filter(self.model.tags.any(Tag.id == tag_record.id))

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(self.model.title.ilike(pattern), self.model.description.ilike(pattern)))

        sort = sort or ProjectSortEnum.TRENDING.value
        if sort == ProjectSortEnum.FEATURED.value:
            query = query.filter(self.model.featured.is_(True))

        total = query.count()
        offset = (max(page, 1) - 1) * limit

        if sort == ProjectSortEnum.TRENDING.value:
            projects = self._sort_trending(db, query.all())
            return projects[offset:offset + limit], total

        if sort == ProjectSortEnum.POPULAR.value:
            query = query.order_by(self.model.views_count.desc(), self.model.id.desc())
        else:
            query = query.order_by(self.model.created_at.desc(), self.model.id.desc())

        return query.offset(offset).limit(limit).all(), total

    def get_featured(self, db: Session, *, current_user_id: Optional[int] = None) -> Optional[Project]:
        query = self._visible_to(self._base_query(db).filter(self.model.featured.is_(True)), current_user_id)
        return query.order_by(self.model.created_at.desc(), self.model.id.desc()).first()

    def get_trending(self, db: Session, *, limit: int = 4, current_user_id: Optional[int] = None) -> List[Project]:
        projects = self._visible_to(self._base_query(db), current_user_id).all()
        return self._sort_trending(db, projects)[:limit]

    def get_public(self, db: Session) -> List[Project]:
        return (
            db.query(self.model)
            .filter(self.model.is_private.is_(False))
            .order_by(self.model.id.asc())
            .all()
        )

    def get_page_for_admin(self, db: Session, *, page: int = 1, limit: int = 20) -> Tuple[List[Project], int]:
        # Private projects included
        query = self._base_query(db)
        total = query.count()
        projects = (
            query.order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
            .all()
        )
        return projects, total

    def monthly_views(self, db: Session, *, project_ids: Iterable[int], now: Optional[datetime] = None) -> Dict[int, int]:
        now = now or datetime.now(timezone.utc)
        ids = list(project_ids)
        if not ids:
            return {}
        rows = (
            db.query(ProjectView.project_id, ProjectView.views_count)
            .filter(
                ProjectView.project_id.in_(ids),
                ProjectView.year == now.year,
                ProjectView.month == now.month,
            )
            .all()
        )
        return {project_id: views for project_id, views in rows}

    def _sort_trending(self, db: Session, projects: List[Project]) -> List[Project]:
        now = datetime.now(timezone.utc)
        views = self.monthly_views(db, project_ids=[p.id for p in projects], now=now)
        return sorted(
            projects,
            key=lambda p: trending_score(views.get(p.id, 0), p.created_at, now),
            reverse=True,
        )

    def create_with_author(self, db: Session, *, obj_in: ProjectCreate, author_id: int, extra: Optional[dict] = None) -> Project:
        data = obj_in.model_dump(exclude={"tags"})
        data.update(extra or {})
        db_obj = self.model(**data, author_id=author_id)
        db_obj.tags = crud_tag.get_or_create_many(db, names=obj_in.tags)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update_project(self, db: Session, *, db_obj: Project, obj_in: ProjectUpdate) -> Project:
        update_data = obj_in.model_dump(exclude_unset=True)
        tag_names = update_data.pop("tags", None)
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        if tag_names is not None:
            db_obj.tags = crud_tag.get_or_create_many(db, names=tag_names)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def set_featured(self, db: Session, *, db_obj: Project, featured: bool) -> Project:
        return self.update(db, db_obj=db_obj, obj_in={"featured": featured})

    def increment_views(self, db: Session, *, db_obj: Project) -> Project:
        now = datetime.now(timezone.utc)
        db_obj.views_count = (db_obj.views_count or 0) + 1
        monthly = (
            db.query(ProjectView)
            .filter(ProjectView.project_id == db_obj.id, ProjectView.year == now.year, ProjectView.month == now.month)
            .first()
        )
        if monthly:
            monthly.views_count += 1
        else:
            db.add(ProjectView(project_id=db_obj.id, year=now.year, month=now.month, views_count=1))
        db.commit()
        db.refresh(db_obj)
        return db_obj

    # Engagement

    def _project_like_filter(self, project_id: int):
        return and_(Like.project_id == project_id, Like.comment_id.is_(None), Like.reply_id.is_(None))

    def likes_count(self, db: Session, *, project_id: int) -> int:
        return db.query(func.count(Like.id)).filter(self._project_like_filter(project_id)).scalar() or 0

    def comments_count(self, db: Session, *, project_id: int) -> int:
        return db.query(func.count(Comment.id)).filter(Comment.project_id == project_id).scalar() or 0

    def is_liked(self, db: Session, *, project_id: int, user_id: Optional[int]) -> bool:
        if not user_id:
            return False
        return db.query(Like.id).filter(self._project_like_filter(project_id), Like.user_id == user_id).first() is not None

    def is_bookmarked(self, db: Session, *, project_id: int, user_id: Optional[int]) -> bool:
        if not user_id:
            return False
        return db.query(Bookmark.id).filter(Bookmark.project_id == project_id, Bookmark.user_id == user_id).first() is not None

    def like(self, db: Session, *, project_id: int, user_id: int) -> bool:
        """Returns False when the like already existed."""
        if self.is_liked(db, project_id=project_id, user_id=user_id):
            return False
        db.add(Like(project_id=project_id, user_id=user_id))
        db.commit()
        return True

    def unlike(self, db: Session, *, project_id: int, user_id: int) -> bool:
        deleted = db.query(Like).filter(self._project_like_filter(project_id), Like.user_id == user_id).delete(synchronize_session=False)
        db.commit()
        return deleted > 0

    def bookmark(self, db: Session, *, project_id: int, user_id: int) -> bool:
        if self.is_bookmarked(db, project_id=project_id, user_id=user_id):
            return False
        db.add(Bookmark(project_id=project_id, user_id=user_id))
        db.commit()
        return True

    def unbookmark(self, db: Session, *, project_id: int, user_id: int) -> bool:
        deleted = db.query(Bookmark).filter(Bookmark.project_id == project_id, Bookmark.user_id == user_id).delete(synchronize_session=False)
        db.commit()
        return deleted > 0

    def record_share(self, db: Session, *, db_obj: Project, platform: str, user_id: Optional[int]) -> Share:
        share = Share(project_id=db_obj.id, user_id=user_id, platform=platform)
        db_obj.shares_count = (db_obj.shares_count or 0) + 1
        db.add(share)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return share

project = CRUDProject(Project)
