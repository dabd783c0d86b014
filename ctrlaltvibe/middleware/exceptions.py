from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from ctrlaltvibe.schemas.response import ErrorResponse, ErrorDetail
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

def _get_error_code(status_code: int) -> str:
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        429: "TOO_MANY_REQUESTS",
        500: "INTERNAL_SERVER_ERROR",
    }
    return code_map.get(status_code, f"HTTP_{status_code}")

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())

def _render(request: Request, status_code: int, detail: ErrorDetail, headers=None) -> JSONResponse:
    error_response = ErrorResponse(
        error=detail,
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=request.url.path,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(error_response), headers=headers)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"[{_request_id(request)}] Validation error on {request.url.path}: {exc.errors()}")
    return _render(
        request,
        422,
        ErrorDetail(
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"validation_errors": jsonable_encoder(exc.errors())},
        ),
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"[{_request_id(request)}] HTTP {exc.status_code}: {exc.detail}")
    return _render(
        request,
        exc.status_code,
        ErrorDetail(
            code=_get_error_code(exc.status_code),
            message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        ),
        headers=getattr(exc, "headers", None),
    )

async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"[{_request_id(request)}] Unhandled exception: {exc}", exc_info=True)
    return _render(
        request,
        500,
        ErrorDetail(
            code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred",
            details={"error_type": type(exc).__name__},
        ),
    )
