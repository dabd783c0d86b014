from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.schemas.response import APIResponse
from ctrlaltvibe.services.tag import tag_service
from ctrlaltvibe.utils import deps

router = APIRouter()

@router.get("/popular", response_model=APIResponse[List[Dict[str, Any]]])
async def get_popular_tags(
    request: Request,
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
):
    data = tag_service.get_popular_tags(db, cache, request=request, limit=limit)
    return APIResponse(message="Popular tags fetched successfully", data=data)

@router.get("", response_model=APIResponse[List[Dict[str, Any]]])
async def get_all_tags(
    request: Request,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
):
    data = tag_service.get_all_tags(db, cache, request=request)
    return APIResponse(message="Tags fetched successfully", data=data)
