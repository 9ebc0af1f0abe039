"""Generic API response schemas"""

from pydantic import BaseModel, Field
from typing import Optional, Any, Dict, Generic, List, TypeVar

from dashboard_api.core.timeutils import utcnow

T = TypeVar("T")


def _now_iso() -> str:
    return utcnow().isoformat()


class APIResponse(BaseModel):
    """Generic API success response"""
    success: bool = True
    message: str
    data: Optional[Any] = None
    timestamp: str = Field(default_factory=_now_iso)


class ErrorResponse(BaseModel):
    """Generic API error response"""
    success: bool = False
    error: str
    code: str
    details: Optional[Dict[str, Any]] = None
    path: Optional[str] = None
    timestamp: str = Field(default_factory=_now_iso)


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a listing"""
    items: List[T]
    total: int
    page: int
    limit: int
    pages: int
