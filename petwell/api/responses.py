"""
Response envelope shared by every JSON endpoint.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..auth.models import utcnow


class APIResponse(BaseModel):
    """Uniform body for successes and failures"""
    status_code: int
    message: str
    success: bool
    timestamp: datetime = Field(default_factory=utcnow)
    path: Optional[str] = None
    errors: Optional[Dict[str, Any]] = None
    data: Optional[Any] = None


def envelope(
    request: Request,
    status_code: int,
    message: str,
    data: Any = None,
    errors: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    """Render an APIResponse as a JSONResponse"""
    body = APIResponse(
        status_code=status_code,
        message=message,
        success=status_code < 400,
        path=request.url.path,
        errors=errors,
        data=data,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )
