from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Единый конверт ответа: и для успеха, и для ошибок."""

    status: int
    message: str
    timestamp: datetime
    data: Optional[T] = None
    error: Optional[Any] = None


def success_response(data: Any = None, message: str = "Success", status: int = 200) -> dict:
    return {
        "status": status,
        "message": message,
        "timestamp": datetime.now(timezone.utc),
        "data": data,
        "error": None,
    }


def error_response(status: int, message: str, error: Any = None) -> dict:
    return {
        "status": status,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": None,
        "error": error if error is not None else message,
    }
