from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .context import PageContext
from .element import Element


class ActionMode(str, Enum):
    generate = "generate"
    improve = "improve"


class PromptType(str, Enum):
    section = "section"
    orchestrated = "orchestrated"
    improvement = "improvement"


class GenerationRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "instruction": "Create a complete e-commerce website",
                "currentElements": [],
                "userId": "user-42",
                "mode": "generate",
                "forceOrchestration": False,
            }
        },
    )

    instruction: str
    current_elements: Sequence[Element] = Field(default_factory=list)
    user_id: str
    mode: ActionMode = ActionMode.generate
    force_orchestration: bool = False


class GenerationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    elements: Sequence[Element] = Field(default_factory=list)
    suggestions: Sequence[str] = Field(default_factory=list)
    reasoning: str = ""
    context: PageContext | None = None
    steps_completed: int = 0
    total_steps: int = 0
    orchestrated: bool = False
    error: str | None = None
    raw_backend_response: str | None = Field(default=None, exclude=True)


class PromptRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    prompt_type: PromptType
    prompt_text: str
    response_summary: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


__all__ = [
    "ActionMode",
    "GenerationRequest",
    "GenerationResult",
    "PromptRecord",
    "PromptType",
]
