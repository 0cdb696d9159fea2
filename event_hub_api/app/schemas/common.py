"""
Response envelope shared by every endpoint.

All responses have the shape ``{"success": bool, "message": str,
"data": ...}``.  Error responses are produced by the exception handlers
in ``main`` and may carry an ``errors`` list with field-level detail.
"""

from typing import Any, Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    success: bool = True
    message: str = ""
    data: Optional[Any] = None


class FieldError(BaseModel):
    field: str
    message: str
