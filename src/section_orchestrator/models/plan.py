from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StepKind(str, Enum):
    generate = "generate"


class PlanStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    instruction_text: str
    priority: int
    kind: StepKind = StepKind.generate


__all__ = ["PlanStep", "StepKind"]
