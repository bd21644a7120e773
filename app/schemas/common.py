"""
OP-Blog API: Shared Schema Pieces
=================================

Wire conventions:
    - JSON field names are camelCase (alias generator); Python code uses
      snake_case names thanks to populate_by_name
    - record ids are serialized as `_id`
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


# ══════════════════════════════════════════════════════════════════════════
# Generic responses
# ══════════════════════════════════════════════════════════════════════════


class MessageResponse(APIModel):
    message: str = Field(description="Human-readable outcome")


class SuccessMessageResponse(MessageResponse):
    success: bool = Field(default=True)


class ImageRef(APIModel):
    """An image on the image host; publicId is null for default images."""

    url: str
    public_id: Optional[str] = None


class ErrorResponse(APIModel):
    """
    Error envelope returned by every exception handler.

    `errors` is present for validation failures, grouped by request part
    (body, query, params). `stack` is present outside production only.
    """

    message: str = Field(description="Human-readable error description")
    errors: Optional[Dict[str, Dict[str, str]]] = Field(default=None)
    stack: Optional[str] = Field(default=None)
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(APIModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
