"""
FakeSO Backend — Shared Pydantic Schemas
==========================================

What:  Base model and response models shared by every resource.
Why:   The frontend speaks camelCase JSON (askDateTime, upVotes) while the
       Python side uses snake_case. A single base model with an alias
       generator keeps both conventions without hand-written aliases.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for all API models.

    - alias_generator: serializes `ask_date_time` as `askDateTime`
    - populate_by_name: Python callers (services, tests) may still use snake_case
    - from_attributes: lets FastAPI read ORM objects directly where shapes match
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_event(self) -> dict:
        """JSON-ready camelCase dict for the real-time event bus."""
        return self.model_dump(mode="json", by_alias=True)


class MessageResponse(CamelModel):
    """Plain acknowledgement for mutations with no entity to return."""
    msg: str = Field(description="Human-readable status message")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    subscribers: int = Field(description="Connected real-time subscribers")
    uptime_seconds: float = Field(description="Seconds since service started")
