from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Acknowledgement returned by settings writes, integration checks and health checks."""
    message: str = Field(..., description="Human readable message")
    details: Optional[dict] = Field(default=None, description="Optional extra data, e.g. the saved values")


class ErrorInfo(BaseModel):
    type: str = Field(
        ...,
        description="Error code: http_error, validation_error or internal_error",
    )
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(default=None, description="Field errors of a rejected settings form")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """
    Error envelope returned by every exception handler.

    tenant_id is the settings owner (company or superadmin) and workspace_id the
    acting workspace, when the request got far enough to resolve them.
    """
    status: int = Field(..., description="HTTP status code")
    error: ErrorInfo
    correlation_id: Optional[str] = Field(default=None, description="Echo of X-Correlation-ID")
    tenant_id: Optional[str] = Field(default=None, description="Settings owner id")
    workspace_id: Optional[str] = Field(default=None, description="Acting workspace id")
    path: Optional[str] = None
    method: Optional[str] = None
    timestamp: datetime = Field(..., description="UTC time of the failure")
