from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

ERROR_MESSAGE_LIMIT = 1000


class GenerationResult(BaseModel):
    text: str | None = None
    image_base64: str | None = None
    provider_used: str
    model_used: str
    requested_provider: str
    duration_ms: float
    tokens_used: int | None = None
    success: bool = True


class UsageLogEntry(BaseModel):
    """One row of `llm_usage_logs`; written once per dispatch attempt."""

    provider: str
    model: str
    operation: str
    tokens_used: int | None = None
    duration_ms: float
    success: bool
    error_message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("error_message")
    @classmethod
    def _truncate_error(cls, value: str | None) -> str | None:
        return value[:ERROR_MESSAGE_LIMIT] if value else value


class StructureTextResponse(BaseModel):
    success: bool = True
    content: str
    provider_used: str
