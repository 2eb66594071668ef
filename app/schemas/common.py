"""Response envelope shared by every endpoint."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ResponseMeta(BaseModel):
    timestamp: datetime = Field(..., description="Time the response was produced (UTC)")
    request_id: str = Field(..., description="Correlation id of the request")
    api_version: str = Field(default="v1", description="API version that served the request")


class ApiResponse(BaseModel):
    """Standard success envelope; list results are returned under ``data.items``."""

    status: bool = Field(default=True, description="Whether the operation succeeded")
    message: str = Field(..., description="Human-readable outcome")
    data: Dict[str, Any] = Field(default_factory=dict, description="Operation payload")
    meta: ResponseMeta


class ErrorDetail(BaseModel):
    """Problem details (RFC 7807)."""

    title: str = Field(..., description="Short summary of the problem type")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Explanation specific to this occurrence")
    instance: Optional[str] = Field(None, description="Request path that produced the error")
    field: Optional[str] = Field(None, description="Offending input field, for validation errors")
    request_id: str = Field(..., description="Correlation id of the request")
    timestamp: datetime = Field(..., description="Time the error was produced (UTC)")
