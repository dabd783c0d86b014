from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from ctrlaltvibe.core.config import settings
from ctrlaltvibe.core.logging import configure_logging
from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.database import Base, engine
from ctrlaltvibe.core.performance import PerformanceMonitor
from ctrlaltvibe.core.scheduler import start_scheduler, stop_scheduler
from ctrlaltvibe.endpoints import admin, auth, comments, monitoring, notifications, projects, realtime, tags
from ctrlaltvibe.middleware.exceptions import global_exception_handler, http_exception_handler, validation_exception_handler
from ctrlaltvibe.middleware.logging import RequestLoggingMiddleware
from ctrlaltvibe.models import all as _models  # noqa: F401  registers every table on Base.metadata
from ctrlaltvibe.realtime import websockets as websocket_events
from ctrlaltvibe.realtime.registry import ConnectionRegistry

configure_logging()
logger = logging.getLogger("ctrlaltvibe")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json"
)

# Process-wide state. Neither the cache nor the connection registry is shared
# between processes, so run a single worker per deployment.
app.state.cache = TaggedCache(default_ttl=settings.CACHE_DEFAULT_TTL_SECONDS)
app.state.connection_registry = ConnectionRegistry()
app.state.performance_monitor = PerformanceMonitor()

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["Auth"])
app.include_router(projects.router, prefix=f"{settings.API_PREFIX}/projects", tags=["Projects"])
app.include_router(comments.router, prefix=settings.API_PREFIX, tags=["Comments"])
app.include_router(tags.router, prefix=f"{settings.API_PREFIX}/tags", tags=["Tags"])
app.include_router(notifications.router, prefix=f"{settings.API_PREFIX}/notifications", tags=["Notifications"])
app.include_router(realtime.router, prefix=f"{settings.API_PREFIX}/realtime", tags=["Realtime"])
app.include_router(admin.router, prefix=f"{settings.API_PREFIX}/admin", tags=["Admin"])
app.include_router(monitoring.router, tags=["Monitoring"])
app.include_router(websocket_events.router)

@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
    start_scheduler(app.state.cache)
    logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} started")

@app.on_event("shutdown")
async def shutdown_event():
    stop_scheduler()
    app.state.connection_registry.close_all()
    logger.info("Shutdown complete")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
