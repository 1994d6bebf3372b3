"""
Generic response schemas
"""

from pydantic import BaseModel, Field
from typing import Any, Optional, Dict, List, Generic, TypeVar

T = TypeVar('T')


class ErrorDetail(BaseModel):
    """Error detail schema"""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = {}


class ErrorResponse(BaseModel):
    """Generic error response"""
    success: bool = False
    error: ErrorDetail


class PaginationMeta(BaseModel):
    """Pagination metadata"""
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=60)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    has_next: bool = False
    has_prev: bool = False


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response"""
    items: List[T]
    total_count: int = Field(..., ge=0)
    pagination: PaginationMeta

