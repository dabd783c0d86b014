from pydantic import BaseModel, Field
from typing import Any, Dict, Generic, List, Optional, TypeVar

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Envelope returned by every JSON endpoint."""
    message: str
    data: Optional[DataType] = None

class Page(BaseModel, Generic[DataType]):
    items: List[DataType]
    total: int
    page: int
    limit: int
    has_more: bool = Field(..., description="True when later pages hold more items")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine readable error code, e.g. NOT_FOUND")
    message: str
    details: Optional[Dict[str, Any]] = None

class ErrorResponse(BaseModel):
    error: ErrorDetail
    timestamp: str = Field(..., description="ISO 8601 time the error was produced")
    path: str
    request_id: Optional[str] = None
