"""
Shared response models: error bodies and the health check.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API models: camelCase aliases, populated by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """
    Minimal error body. Verbose mode adds `error` (raw error object) and
    `stack`.

    Example:
        {
            "status": "fail",
            "message": "You do not have access to this project",
            "timestamp": "2024-01-15T12:00:00.000000Z"
        }
    """

    status: str = Field(description='"fail" for 4xx, "error" for 5xx')
    message: str
    timestamp: datetime
    error: Optional[Dict[str, Any]] = None
    stack: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(description='"OK" when the database answers, else "DEGRADED"')
    message: str
    environment: str
    version: str
    database: str = Field(description="connected | disconnected")
    uptime_seconds: float
    timestamp: datetime
