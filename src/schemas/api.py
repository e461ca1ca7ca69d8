"""API response schemas.

This module defines the common API response formats used across the application.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """Current time as an ISO-8601 string with millisecond precision and a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper.

    Attributes:
        success: Whether the request was successful.
        data: The actual response data (when success is True).
        message: A human-readable message about the response.
        timestamp: When the response was produced.
    """

    success: bool = True
    data: T | None = None
    message: str = "Operation completed successfully"
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorResponse(BaseModel):
    """Error API response.

    Serialized with camelCase keys to match the webhook contract:
    ``{error, message, success: false, timestamp, correlationId, details}``.

    Attributes:
        error: Stable machine-readable error code.
        message: A human-readable error message.
        details: Additional context (missing fields, record ids, ...).
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str = "internal_server_error"
    message: str | None = None
    timestamp: str = Field(default_factory=utc_timestamp)
    correlation_id: str | None = Field(default=None, alias="correlationId")
    details: dict[str, Any] | None = None

    def to_content(self) -> dict[str, Any]:
        """Serialize for a JSONResponse body."""
        return self.model_dump(by_alias=True, exclude_none=True)
