"""
Response envelopes shared by the v1 routers
"""
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ResponseBase(BaseModel):
    success: bool = True
    message: Optional[str] = None


class DataResponse(ResponseBase, Generic[T]):
    """Single object, e.g. a ScrapeRun or a follow link"""
    data: Optional[T] = None


class ListResponse(ResponseBase, Generic[T]):
    """Newest-first listing; total counts every row matching the filters"""
    data: List[T] = []
    total: int = 0
    limit: Optional[int] = None


class ErrorResponse(BaseModel):
    """Body for an AdLensError: message, machine code and optional detail (limits, spend)"""
    success: bool = False
    error: str
    code: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None
