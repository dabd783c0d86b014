from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.constants import ProjectSortEnum
from ctrlaltvibe.models.user import User
from ctrlaltvibe.realtime.registry import NotificationDelivery
from ctrlaltvibe.schemas.project import CommentCreate, ProjectCreate, ProjectUpdate, ShareCreate
from ctrlaltvibe.schemas.response import APIResponse, Page
from ctrlaltvibe.services.project import project_service
from ctrlaltvibe.utils import deps

router = APIRouter()

@router.get("", response_model=APIResponse[Page[Dict[str, Any]]])
async def list_projects(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(6, ge=1, le=50),
    tag: Optional[str] = None,
    search: Optional[str] = None,
    sort: ProjectSortEnum = ProjectSortEnum.TRENDING,
    user: Optional[str] = Query(None, description="Only projects by this username"),
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    viewer: Optional[User] = Depends(deps.get_optional_user),
):
    data = project_service.list_projects(
        db, cache, request=request,
        page=page, limit=limit, tag=tag, search=search, sort=sort.value,
        username=user, viewer_id=viewer.id if viewer else None,
    )
    return APIResponse(message="Projects fetched successfully", data=data)

@router.get("/featured", response_model=APIResponse[Optional[Dict[str, Any]]])
async def get_featured_project(
    request: Request,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    viewer: Optional[User] = Depends(deps.get_optional_user),
):
    data = project_service.get_featured(db, cache, request=request, viewer_id=viewer.id if viewer else None)
    return APIResponse(message="Featured project fetched successfully", data=data)

@router.get("/trending", response_model=APIResponse[List[Dict[str, Any]]])
async def get_trending_projects(
    request: Request,
    limit: int = Query(4, ge=1, le=20),
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    viewer: Optional[User] = Depends(deps.get_optional_user),
):
    data = project_service.get_trending(db, cache, request=request, limit=limit, viewer_id=viewer.id if viewer else None)
    return APIResponse(message="Trending projects fetched successfully", data=data)

@router.get("/{project_id}", response_model=APIResponse[Dict[str, Any]])
async def get_project(
    project_id: int,
    db: Session = Depends(deps.get_db),
    viewer: Optional[User] = Depends(deps.get_optional_user),
):
    data = project_service.get_project(db, project_id=project_id, viewer=viewer)
    return APIResponse(message="Project fetched successfully", data=data)

@router.post("", response_model=APIResponse[Dict[str, Any]], status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_user),
):
    data = await project_service.create_project(db, cache, obj_in=project_in, author=current_user)
    return APIResponse(message="Project created successfully", data=data)

@router.put("/{project_id}", response_model=APIResponse[Dict[str, Any]])
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_user),
):
    data = await project_service.update_project(db, cache, project_id=project_id, obj_in=project_in, user=current_user)
    return APIResponse(message="Project updated successfully", data=data)

@router.delete("/{project_id}", response_model=APIResponse[None])
async def delete_project(
    project_id: int,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_user),
):
    await project_service.delete_project(db, cache, project_id=project_id, user=current_user)
    return APIResponse(message="Project deleted successfully")

@router.post("/{project_id}/like", response_model=APIResponse[Dict[str, Any]])
async def like_project(
    project_id: int,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    delivery: NotificationDelivery = Depends(deps.get_notification_delivery),
    current_user: User = Depends(deps.get_current_user),
):
    data = await project_service.like_project(db, cache, delivery, project_id=project_id, user=current_user)
    return APIResponse(message="Project liked", data=data)

@router.delete("/{project_id}/like", response_model=APIResponse[Dict[str, Any]])
async def unlike_project(
    project_id: int,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_user),
):
    data = await project_service.unlike_project(db, cache, project_id=project_id, user=current_user)
    return APIResponse(message="Project unliked", data=data)

@router.post("/{project_id}/bookmark", response_model=APIResponse[Dict[str, Any]])
async def bookmark_project(
    project_id: int,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_user),
):
    data = await project_service.set_bookmark(db, cache, project_id=project_id, user=current_user, bookmarked=True)
    return APIResponse(message="Project bookmarked", data=data)

@router.delete("/{project_id}/bookmark", response_model=APIResponse[Dict[str, Any]])
async def unbookmark_project(
    project_id: int,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    current_user: User = Depends(deps.get_current_user),
):
    data = await project_service.set_bookmark(db, cache, project_id=project_id, user=current_user, bookmarked=False)
    return APIResponse(message="Bookmark removed", data=data)

@router.post("/{project_id}/share", response_model=APIResponse[Dict[str, Any]])
async def share_project(
    project_id: int,
    share_in: ShareCreate,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    delivery: NotificationDelivery = Depends(deps.get_notification_delivery),
    viewer: Optional[User] = Depends(deps.get_optional_user),
):
    data = await project_service.share_project(db, cache, delivery, project_id=project_id, platform=share_in.platform, user=viewer)
    return APIResponse(message="Share recorded", data=data)

@router.get("/{project_id}/comments", response_model=APIResponse[Page[Dict[str, Any]]])
async def list_comments(
    project_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("newest", pattern="^(newest|oldest)$"),
    db: Session = Depends(deps.get_db),
    viewer: Optional[User] = Depends(deps.get_optional_user),
):
    data = project_service.list_comments(
        db, project_id=project_id, viewer=viewer, page=page, limit=limit, newest_first=sort_by == "newest"
    )
    return APIResponse(message="Comments fetched successfully", data=data)

@router.post("/{project_id}/comments", response_model=APIResponse[Dict[str, Any]], status_code=status.HTTP_201_CREATED)
async def create_comment(
    project_id: int,
    comment_in: CommentCreate,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    delivery: NotificationDelivery = Depends(deps.get_notification_delivery),
    current_user: User = Depends(deps.get_current_user),
):
    data = await project_service.create_comment(
        db, cache, delivery, project_id=project_id, content=comment_in.content, user=current_user
    )
    return APIResponse(message="Comment added", data=data)
