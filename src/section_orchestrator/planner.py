from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .models.context import PageContext
from .models.plan import PlanStep, StepKind


@dataclass(frozen=True)
class StepTemplate:
    instruction: str
    # PageContext flag that makes this step redundant when already true.
    skip_when: str | None = None


@dataclass(frozen=True)
class PlanBranch:
    name: str
    triggers: tuple[str, ...]
    steps: tuple[StepTemplate, ...]

    def matches(self, lowered_instruction: str) -> bool:
        return any(trigger in lowered_instruction for trigger in self.triggers)


# Checked top to bottom; the first matching branch wins. "complete e-commerce
# website" does not contain "complete website", so it reaches the e-commerce row.
PLAN_BRANCHES: tuple[PlanBranch, ...] = (
    PlanBranch(
        name="full_site",
        triggers=("complete website", "full site"),
        steps=(
            StepTemplate("Create a professional navigation menu", skip_when="has_navigation"),
            StepTemplate("Create an engaging hero section", skip_when="has_hero"),
            StepTemplate("Add main content sections"),
            StepTemplate("Create a footer with links and contact info", skip_when="has_footer"),
        ),
    ),
    PlanBranch(
        name="ecommerce",
        triggers=("e-commerce", "shop"),
        steps=(
            StepTemplate("Create product showcase section"),
            StepTemplate("Add pricing section"),
            StepTemplate("Create call-to-action buttons for purchases"),
        ),
    ),
    PlanBranch(
        name="portfolio",
        triggers=("portfolio",),
        steps=(
            StepTemplate("Create project gallery section"),
            StepTemplate("Add skills and experience section"),
            StepTemplate("Create contact section for clients"),
        ),
    ),
)


class StepPlanner:
    def __init__(self, branches: Sequence[PlanBranch] = PLAN_BRANCHES) -> None:
        self._branches = tuple(branches)

    def match_branch(self, instruction: str) -> PlanBranch | None:
        lowered = instruction.lower()
        for branch in self._branches:
            if branch.matches(lowered):
                return branch
        return None

    def plan(self, instruction: str, context: PageContext) -> tuple[PlanStep, ...]:
        """Decompose an instruction into ordered generation steps.

        Steps already satisfied by the page are skipped and the remaining ones
        are numbered 1..n. No matching branch yields an empty plan.
        """
        branch = self.match_branch(instruction)
        if branch is None:
            return ()
        templates = [
            template
            for template in branch.steps
            if not (template.skip_when and getattr(context, template.skip_when))
        ]
        steps = [
            PlanStep(instruction_text=template.instruction, priority=index, kind=StepKind.generate)
            for index, template in enumerate(templates, start=1)
        ]
        return tuple(sorted(steps, key=lambda step: step.priority))


__all__ = ["PLAN_BRANCHES", "PlanBranch", "StepPlanner", "StepTemplate"]
