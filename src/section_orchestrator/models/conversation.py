from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StepRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    instruction_text: str
    succeeded: bool
    executed_at: datetime


class ConversationRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    completed_steps: list[StepRecord] = Field(default_factory=list)
    last_activity_at: datetime


__all__ = ["ConversationRecord", "StepRecord"]
