"""
Response envelope shared by every endpoint.
"""
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {statusCode, message: "Success", data}."""
    statusCode: int = 200
    message: str = "Success"
    data: T

    @classmethod
    def ok(cls, data: Any, status_code: int = 200) -> "ApiResponse":
        return cls(statusCode=status_code, data=data)


class ErrorResponse(BaseModel):
    """Failure envelope: {statusCode, message, timestamp, path, error}."""
    statusCode: int
    message: str
    timestamp: str
    path: str
    error: Optional[Any] = None


class MessageResponse(BaseModel):
    message: str
