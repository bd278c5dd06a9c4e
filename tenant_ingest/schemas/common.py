"""
Response envelope shared by every endpoint.

    success: {"success": true,  "data": {...}}
    failure: {"success": false, "error": "<message>", "error_code": "<CODE>", "data": null | {...}}
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data:    T


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response. `data` carries partial-progress details when present."""
    success:    bool = False
    error:      str = Field(..., description="Human-readable message")
    error_code: str = Field(..., description="Stable machine-readable code")
    data:       dict[str, Any] | None = None
