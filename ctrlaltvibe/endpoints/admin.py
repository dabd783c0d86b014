from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.models.user import User
from ctrlaltvibe.schemas.project import FeaturedUpdate
from ctrlaltvibe.schemas.response import APIResponse, Page
from ctrlaltvibe.schemas.user import RoleUpdate
from ctrlaltvibe.services.admin import admin_service
from ctrlaltvibe.services.cache_service import cache_service
from ctrlaltvibe.services.comment import comment_service
from ctrlaltvibe.services.project import project_service
from ctrlaltvibe.utils import deps

router = APIRouter()

@router.patch("/projects/{project_id}/featured", response_model=APIResponse[Dict[str, Any]])
async def set_project_featured(
    project_id: int,
    featured_in: FeaturedUpdate,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_admin),
):
    data = await project_service.set_featured(db, cache, project_id=project_id, featured=featured_in.featured)
    return APIResponse(message="Featured flag updated", data=data)

# Moderation

@router.get("/users", response_model=APIResponse[Page[Dict[str, Any]]])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_admin),
):
    data = admin_service.list_users(db, page=page, limit=limit)
    return APIResponse(message="Users fetched successfully", data=data)

@router.get("/projects", response_model=APIResponse[Page[Dict[str, Any]]])
async def list_all_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_admin),
):
    """Every project, private ones included, newest first"""
    data = admin_service.list_projects(db, page=page, limit=limit)
    return APIResponse(message="Projects fetched successfully", data=data)

@router.put("/users/{user_id}/role", response_model=APIResponse[Dict[str, Any]])
async def update_user_role(
    user_id: int,
    role_in: RoleUpdate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_admin),
):
    data = admin_service.update_role(db, user_id=user_id, role=role_in.role, admin=current_user)
    return APIResponse(message="User role updated successfully", data=data)

@router.delete("/users/{user_id}", response_model=APIResponse[None])
async def delete_user(
    user_id: int,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_admin),
):
    await admin_service.delete_user(db, cache, user_id=user_id, admin=current_user)
    return APIResponse(message="User deleted successfully")

@router.delete("/comments/{comment_id}", response_model=APIResponse[None])
async def delete_comment(
    comment_id: int,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_admin),
):
    await comment_service.delete_comment(db, cache, comment_id=comment_id, user=current_user)
    return APIResponse(message="Comment deleted successfully")

# Cache

@router.get("/cache/stats")
async def get_cache_stats(
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_admin),
) -> APIResponse:
    """Cache size, per-tag entry counts and hit ratio"""
    return APIResponse(message="Cache statistics retrieved", data=cache_service.get_cache_stats(cache))

@router.post("/cache/clear")
async def clear_cache(
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_admin),
) -> APIResponse:
    cache.clear()
    return APIResponse(message="All cache entries cleared")

@router.post("/cache/invalidate/{tag}")
async def invalidate_cache_tag(
    tag: str,
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_admin),
) -> APIResponse:
    removed = cache_service.invalidate_tag(cache, tag)
    return APIResponse(message=f"Invalidated {removed} cache entries tagged {tag}", data={"tag": tag, "removed": removed})
