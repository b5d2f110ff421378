"""
Response envelope shared by every endpoint.
"""

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorDetail(BaseModel):
    field: Optional[str] = None
    message: str


class ApiResponse(BaseModel, Generic[T]):
    """``{success, message, data}`` wrapper for successful responses."""
    success: bool = True
    message: str
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: List[Any] = []


def envelope(message: str, data: Any = None) -> dict:
    return {"success": True, "message": message, "data": data}
