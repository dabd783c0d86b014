from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.constants import RoleEnum
from ctrlaltvibe.crud.project import project as crud_project
from ctrlaltvibe.crud.user import user as crud_user
from ctrlaltvibe.models.user import User
from ctrlaltvibe.services.cache_service import cache_service
from ctrlaltvibe.services.project import project_service

logger = logging.getLogger(__name__)


def _user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "auth_provider": user.auth_provider,
        "bio": user.bio,
        "avatar_url": user.avatar_url,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _page(items, total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "has_more": (page - 1) * limit + len(items) < total,
    }


class AdminService:
    def _get_user_or_404(self, db: Session, user_id: int) -> User:
        target = crud_user.get(db, id=user_id)
        if not target:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return target

    def list_users(self, db: Session, *, page: int, limit: int) -> Dict[str, Any]:
        users, total = crud_user.get_page(db, page=page, limit=limit)
        items = [_user(u) for u in users]
        return _page(items, total, page, limit)

    def list_projects(self, db: Session, *, page: int, limit: int) -> Dict[str, Any]:
        projects, total = crud_project.get_page_for_admin(db, page=page, limit=limit)
        items = [project_service.serialize_project(db, p) for p in projects]
        return _page(items, total, page, limit)

    def update_role(self, db: Session, *, user_id: int, role: RoleEnum, admin: User) -> Dict[str, Any]:
        if user_id == admin.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")
        target = crud_user.set_role(db, db_obj=self._get_user_or_404(db, user_id), role=role)
        logger.info(f"User {target.id} role set to {role.value} by admin {admin.id}")
        return _user(target)

    async def delete_user(self, db: Session, cache: Optional[TaggedCache], *, user_id: int, admin: User) -> None:
        if user_id == admin.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
        target = self._get_user_or_404(db, user_id)

        crud_user.delete_with_content(db, db_obj=target)
        logger.info(f"User {user_id} and their content deleted by admin {admin.id}")

        cache_service.invalidate_for(cache, "user_deleted")

admin_service = AdminService()
