from typing import Any, Dict, List, Optional
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.cache_config import project_featured_key, project_list_key, project_trending_key
from ctrlaltvibe.core.constants import DEFAULT_PROJECT_IMAGE, NotificationTypeEnum
from ctrlaltvibe.core.decorators import cache_read
from ctrlaltvibe.crud.comment import comment as crud_comment
from ctrlaltvibe.crud.project import project as crud_project
from ctrlaltvibe.models.comment import Comment, CommentReply
from ctrlaltvibe.models.project import Project
from ctrlaltvibe.models.user import User
from ctrlaltvibe.realtime.registry import NotificationDelivery
from ctrlaltvibe.schemas.project import ProjectCreate, ProjectUpdate
from ctrlaltvibe.services.cache_service import cache_service
from ctrlaltvibe.services.notification import notification_service
from ctrlaltvibe.services.url_metadata import url_metadata_service

logger = logging.getLogger(__name__)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _list_key(page, limit, tag, search, sort, username, viewer_id) -> str:
    return project_list_key(page, limit, tag, search, sort, username, viewer_id)


def _author(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "username": user.username, "avatar_url": user.avatar_url}


class ProjectService:

    # Serialization. Cached values are plain dicts so nothing in the cache
    # holds on to a Session.

    def serialize_project(self, db: Session, project: Project, viewer_id: Optional[int] = None) -> Dict[str, Any]:
        return {
            "id": project.id,
            "title": project.title,
            "description": project.description,
            "long_description": project.long_description,
            "project_url": project.project_url,
            "image_url": project.image_url,
            "vibe_coding_tool": project.vibe_coding_tool,
            "author": _author(project.author),
            "tags": sorted(tag.name for tag in project.tags),
            "views_count": project.views_count or 0,
            "shares_count": project.shares_count or 0,
            "featured": bool(project.featured),
            "is_private": bool(project.is_private),
            "likes_count": crud_project.likes_count(db, project_id=project.id),
            "comments_count": crud_project.comments_count(db, project_id=project.id),
            "is_liked": crud_project.is_liked(db, project_id=project.id, user_id=viewer_id),
            "is_bookmarked": crud_project.is_bookmarked(db, project_id=project.id, user_id=viewer_id),
            "created_at": _iso(project.created_at),
            "updated_at": _iso(project.updated_at),
        }

    def serialize_reply(self, db: Session, reply: CommentReply, viewer_id: Optional[int] = None) -> Dict[str, Any]:
        return {
            "id": reply.id,
            "comment_id": reply.comment_id,
            "content": reply.content,
            "author": _author(reply.author),
            "likes_count": crud_comment.likes_count(db, reply_id=reply.id),
            "is_liked": crud_comment.is_liked(db, user_id=viewer_id, reply_id=reply.id),
            "created_at": _iso(reply.created_at),
        }

    def serialize_comment(self, db: Session, comment: Comment, viewer_id: Optional[int] = None) -> Dict[str, Any]:
        return {
            "id": comment.id,
            "project_id": comment.project_id,
            "content": comment.content,
            "author": _author(comment.author),
            "likes_count": crud_comment.likes_count(db, comment_id=comment.id),
            "is_liked": crud_comment.is_liked(db, user_id=viewer_id, comment_id=comment.id),
            "replies": [
                self.serialize_reply(db, reply, viewer_id)
                for reply in sorted(comment.replies, key=lambda r: r.id)
            ],
            "created_at": _iso(comment.created_at),
        }

    # Cache-fronted reads

    @cache_read("projects_list", _list_key)
    def list_projects(
        self,
        db: Session,
        *,
        page: int,
        limit: int,
        tag: Optional[str],
        search: Optional[str],
        sort: Optional[str],
        username: Optional[str],
        viewer_id: Optional[int],
    ) -> Dict[str, Any]:
        projects, total = crud_project.get_list(
            db, page=page, limit=limit, tag=tag, search=search, sort=sort,
            username=username, current_user_id=viewer_id,
        )
        return {
            "items": [self.serialize_project(db, p, viewer_id) for p in projects],
            "total": total,
            "page": page,
            "limit": limit,
            "has_more": (page - 1) * limit + len(projects) < total,
        }

    @cache_read("projects_featured", project_featured_key)
    def get_featured(self, db: Session, *, viewer_id: Optional[int]) -> Optional[Dict[str, Any]]:
        project = crud_project.get_featured(db, current_user_id=viewer_id)
        return self.serialize_project(db, project, viewer_id) if project else None

    @cache_read("projects_trending", project_trending_key)
    def get_trending(self, db: Session, *, limit: int, viewer_id: Optional[int]) -> List[Dict[str, Any]]:
        projects = crud_project.get_trending(db, limit=limit, current_user_id=viewer_id)
        return [self.serialize_project(db, p, viewer_id) for p in projects]

    # Single project

    def _get_or_404(self, db: Session, project_id: int, viewer: Optional[User] = None) -> Project:
        project = crud_project.get_with_details(db, project_id=project_id)
        if not project:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
        # Private projects are invisible to everyone but their author
        if project.is_private and (viewer is None or viewer.id != project.author_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
        return project

    def _ensure_can_modify(self, project: Project, user: User) -> None:
        if project.author_id != user.id and not user.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have permission to modify this project")

    def get_project(self, db: Session, *, project_id: int, viewer: Optional[User] = None) -> Dict[str, Any]:
        project = self._get_or_404(db, project_id, viewer)
        project = crud_project.increment_views(db, db_obj=project)
        return self.serialize_project(db, project, viewer.id if viewer else None)

    async def create_project(self, db: Session, cache: Optional[TaggedCache], *, obj_in: ProjectCreate, author: User) -> Dict[str, Any]:
        extra: Dict[str, Any] = {}
        if not obj_in.description or not obj_in.image_url:
            metadata = await url_metadata_service.fetch(obj_in.project_url, cache=cache)
            if not obj_in.description:
                extra["description"] = metadata.get("description", "")
            if not obj_in.image_url:
                extra["image_url"] = metadata.get("image_url") or DEFAULT_PROJECT_IMAGE

        project = crud_project.create_with_author(db, obj_in=obj_in, author_id=author.id, extra=extra)
        logger.info(f"Project {project.id} created by user {author.id}")

        cache_service.invalidate_for(cache, "project_created", featured=project.featured)
        return self.serialize_project(db, project, author.id)

    async def update_project(
        self, db: Session, cache: Optional[TaggedCache], *, project_id: int, obj_in: ProjectUpdate, user: User
    ) -> Dict[str, Any]:
        project = self._get_or_404(db, project_id, user)
        self._ensure_can_modify(project, user)

        project = crud_project.update_project(db, db_obj=project, obj_in=obj_in)
        logger.info(f"Project {project.id} updated by user {user.id}")

        cache_service.invalidate_for(cache, "project_updated", featured=project.featured)
        return self.serialize_project(db, project, user.id)

    async def delete_project(self, db: Session, cache: Optional[TaggedCache], *, project_id: int, user: User) -> None:
        project = self._get_or_404(db, project_id, user)
        self._ensure_can_modify(project, user)

        was_featured = bool(project.featured)
        crud_project.delete(db, id=project.id)
        logger.info(f"Project {project_id} deleted by user {user.id}")

        cache_service.invalidate_for(cache, "project_deleted", featured=was_featured)

    async def set_featured(self, db: Session, cache: Optional[TaggedCache], *, project_id: int, featured: bool) -> Dict[str, Any]:
        project = crud_project.get_with_details(db, project_id=project_id)
        if not project:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

        project = crud_project.set_featured(db, db_obj=project, featured=featured)
        logger.info(f"Project {project.id} featured flag set to {featured}")

        cache_service.invalidate_for(cache, "project_featured_changed", featured=True)
        return self.serialize_project(db, project)

    # Engagement

    async def like_project(
        self, db: Session, cache: Optional[TaggedCache], delivery: Optional[NotificationDelivery], *, project_id: int, user: User
    ) -> Dict[str, Any]:
        project = self._get_or_404(db, project_id, user)

        created = crud_project.like(db, project_id=project.id, user_id=user.id)
        cache_service.invalidate_for(cache, "project_liked", featured=project.featured)

        # Repeating a like does not notify again
        if created:
            await notification_service.notify(
                db, delivery,
                recipient_id=project.author_id,
                actor=user,
                notification_type=NotificationTypeEnum.LIKE_PROJECT,
                project=project,
            )

        return {"liked": True, "likes_count": crud_project.likes_count(db, project_id=project.id)}

    async def unlike_project(self, db: Session, cache: Optional[TaggedCache], *, project_id: int, user: User) -> Dict[str, Any]:
        project = self._get_or_404(db, project_id, user)

        crud_project.unlike(db, project_id=project.id, user_id=user.id)
        cache_service.invalidate_for(cache, "project_unliked", featured=project.featured)

        return {"liked": False, "likes_count": crud_project.likes_count(db, project_id=project.id)}

    async def set_bookmark(
        self, db: Session, cache: Optional[TaggedCache], *, project_id: int, user: User, bookmarked: bool
    ) -> Dict[str, Any]:
        project = self._get_or_404(db, project_id, user)

        if bookmarked:
            crud_project.bookmark(db, project_id=project.id, user_id=user.id)
        else:
            crud_project.unbookmark(db, project_id=project.id, user_id=user.id)
        cache_service.invalidate_for(cache, "project_bookmarked", featured=project.featured)

        return {"bookmarked": bookmarked}

    async def share_project(
        self,
        db: Session,
        cache: Optional[TaggedCache],
        delivery: Optional[NotificationDelivery],
        *,
        project_id: int,
        platform: str,
        user: Optional[User] = None,
    ) -> Dict[str, Any]:
        project = self._get_or_404(db, project_id, user)

        crud_project.record_share(db, db_obj=project, platform=platform, user_id=user.id if user else None)
        logger.info(f"Project {project.id} shared on {platform}")
        cache_service.invalidate_for(cache, "project_shared", featured=project.featured)

        # Anonymous shares are counted but have no actor to notify about
        if user is not None:
            await notification_service.notify(
                db, delivery,
                recipient_id=project.author_id,
                actor=user,
                notification_type=NotificationTypeEnum.SHARE_PROJECT,
                project=project,
            )

        return {"shares_count": project.shares_count}

    # Comments

    def list_comments(
        self, db: Session, *, project_id: int, viewer: Optional[User] = None, page: int = 1, limit: int = 10, newest_first: bool = True
    ) -> Dict[str, Any]:
        project = self._get_or_404(db, project_id, viewer)
        comments = crud_comment.get_for_project(db, project_id=project.id)
        if not newest_first:
            comments = list(reversed(comments))

        total = len(comments)
        start = (max(page, 1) - 1) * limit
        viewer_id = viewer.id if viewer else None
        return {
            "items": [self.serialize_comment(db, c, viewer_id) for c in comments[start:start + limit]],
            "total": total,
            "page": page,
            "limit": limit,
            "has_more": start + limit < total,
        }

    async def create_comment(
        self,
        db: Session,
        cache: Optional[TaggedCache],
        delivery: Optional[NotificationDelivery],
        *,
        project_id: int,
        content: str,
        user: User,
    ) -> Dict[str, Any]:
        project = self._get_or_404(db, project_id, user)

        comment = crud_comment.create_for_project(db, project_id=project.id, author_id=user.id, content=content)
        cache_service.invalidate_for(cache, "comment_created", featured=project.featured)

        await notification_service.notify(
            db, delivery,
            recipient_id=project.author_id,
            actor=user,
            notification_type=NotificationTypeEnum.COMMENT_PROJECT,
            project=project,
            comment=comment,
        )

        return self.serialize_comment(db, comment, user.id)

project_service = ProjectService()
