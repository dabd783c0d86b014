import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id, logs its outcome and feeds timings to the performance monitor."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        path = request.url.path
        method = request.method

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"[{request_id}] {method} {path} - ERROR after {duration_ms:.2f}ms: {exc}")
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code

        cache_status = getattr(request.state, "cache_status", None)
        cache_msg = f" [CACHE: {cache_status}]" if cache_status else ""

        log_level = logging.WARNING if status_code >= 400 else logging.INFO
        logger.log(log_level, f"[{request_id}] {method} {path} - {status_code}{cache_msg} in {duration_ms:.2f}ms")

        monitor = getattr(request.app.state, "performance_monitor", None)
        if monitor is not None:
            route = request.scope.get("route")
            monitor.record(
                f"{method} {getattr(route, 'path', path)}",
                duration_ms,
                status=status_code,
                cache=cache_status or "NONE",
            )

        response.headers["X-Request-ID"] = request_id
        if cache_status:
            response.headers["X-Cache"] = cache_status
        return response
