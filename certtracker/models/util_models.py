from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


class ApiResponse(BaseModel):
    """Envelope shared by every JSON response"""

    success: bool
    status: ResponseStatus
    message: str
    data: Any = None
    meta: Optional[Dict[str, Any]] = None
    errors: Optional[List[Dict[str, Any]]] = None
    warnings: Optional[List[str]] = None
    request_id: Optional[str] = None
    path: Optional[str] = None
