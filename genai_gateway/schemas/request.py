from typing import Any, Literal

from pydantic import BaseModel, Field

Kind = Literal["text", "image"]
ResponseMode = Literal["json", "text"]


class GenerationRequest(BaseModel):
    kind: Kind = "text"
    system_prompt: str | None = None
    prompt: str = Field(..., min_length=1)
    model: str | None = None  # empty = resolved from settings / provider default
    provider_override: str | None = None
    response_mode: ResponseMode = "text"
    operation: str | None = None  # usage-log operation name, defaults per kind
    associated_entity: dict[str, Any] = Field(default_factory=dict)

    @property
    def operation_name(self) -> str:
        return self.operation or f"{self.kind}-generation"


class StructureTextRequest(BaseModel):
    content: str = Field(..., min_length=50)
    news_id: str | None = None
    model: str | None = None
