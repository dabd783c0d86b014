import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.config import settings
from ctrlaltvibe.core.performance import PerformanceMonitor
from ctrlaltvibe.realtime.registry import ConnectionRegistry
from ctrlaltvibe.services.cache_service import cache_service
from ctrlaltvibe.services.sitemap import sitemap_service
from ctrlaltvibe.utils import deps

logger = logging.getLogger(__name__)

router = APIRouter()

def require_monitoring_key(x_api_key: Optional[str] = Header(None)) -> None:
    if not settings.MONITORING_API_KEY or x_api_key != settings.MONITORING_API_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid monitoring API key")

@router.get("/health")
async def health_check(
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
    monitor: PerformanceMonitor = Depends(deps.get_performance_monitor),
):
    checks = {"database": "ok", "cache": "ok"}
    try:
        with monitor.track("health.database"):
            db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database probe failed: {e}")
        checks["database"] = "error"
    if not cache_service.health_check(cache):
        checks["cache"] = "error"

    healthy = all(value == "ok" for value in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "checks": checks,
            "version": settings.VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )

@router.get("/metrics", dependencies=[Depends(require_monitoring_key)])
async def get_metrics(
    limit: int = Query(100, ge=1, le=1000),
    cache: TaggedCache = Depends(deps.get_cache),
    registry: ConnectionRegistry = Depends(deps.get_connection_registry),
    monitor: PerformanceMonitor = Depends(deps.get_performance_monitor),
):
    return {
        "recent": [m.to_dict() for m in monitor.recent(limit)],
        "slow": [m.to_dict() for m in monitor.slow()],
        "summary": monitor.summary(),
        "cache": cache.stats(),
        "realtime": {"connections": registry.connection_count, "users": registry.user_count},
    }

@router.get("/sitemap.xml")
async def get_sitemap(
    request: Request,
    db: Session = Depends(deps.get_db),
    cache: TaggedCache = Depends(deps.get_cache),
):
    xml = sitemap_service.get_xml(db, cache, request=request)
    return Response(content=xml, media_type="application/xml")
