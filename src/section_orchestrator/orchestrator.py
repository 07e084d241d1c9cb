from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Sequence

from .classifier import Complexity, classify_request
from .context_analyzer import analyze_page_context
from .conversation_store import ConversationStore
from .errors import BackendError
from .generation_client import GenerationClient
from .models.element import Element
from .models.generation import (
    ActionMode,
    GenerationRequest,
    GenerationResult,
    PromptRecord,
    PromptType,
)
from .models.plan import PlanStep, StepKind
from .planner import StepPlanner
from .prompt_compiler import HISTORY_LIMIT, compile_prompt
from .prompt_recorder import PromptRecorder
from .response_parser import ParsedResponse, ResponseParser

logger = logging.getLogger(__name__)

MAX_SUMMARY_TYPES = 10


@dataclass
class StepOutcome:
    step: PlanStep
    succeeded: bool
    parsed: ParsedResponse | None = None
    error: str | None = None
    raw: str | None = None


class GenerationOrchestrator:
    """Routes an instruction to a single backend call or a multi-step plan.

    Simple instructions (and every ``improve`` request) go straight to the
    backend. Complex ones are decomposed by the planner and executed one step
    at a time; each step sees the elements produced by the steps before it.
    A failing step is recorded and skipped, never fatal to the plan.
    """

    def __init__(
        self,
        *,
        client: GenerationClient,
        store: ConversationStore,
        parser: ResponseParser | None = None,
        planner: StepPlanner | None = None,
        recorder: PromptRecorder | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._parser = parser or ResponseParser()
        self._planner = planner or StepPlanner()
        self._recorder = recorder

    def generate(
        self,
        request: GenerationRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> GenerationResult:
        self._store.touch(request.user_id)

        if request.mode is ActionMode.improve:
            result = self._direct_generate(request)
            prompt_type = PromptType.improvement
        else:
            analysis = classify_request(request.instruction)
            complex_request = request.force_orchestration or analysis.complexity is Complexity.complex
            logger.info(
                "Classified request",
                extra={
                    "user_id": request.user_id,
                    "complexity": analysis.complexity.value,
                    "forced": request.force_orchestration,
                    "matched_keywords": list(analysis.matched_keywords),
                    "word_count": analysis.word_count,
                },
            )
            if complex_request:
                result = self._orchestrate(request, cancel_event)
                prompt_type = PromptType.orchestrated
            else:
                result = self._direct_generate(request)
                prompt_type = PromptType.section

        if result.success:
            self._record_prompt(request, result, prompt_type)
        return result

    def _direct_generate(self, request: GenerationRequest) -> GenerationResult:
        context = analyze_page_context(request.current_elements)
        prompt = compile_prompt(context, request.mode, request.instruction)
        try:
            raw = self._client.send(prompt.system_directive, prompt.user_directive)
        except BackendError as exc:
            logger.warning(
                "Direct generation failed",
                exc_info=True,
                extra={"user_id": request.user_id, "error": str(exc)},
            )
            return GenerationResult(
                success=False,
                suggestions=list(context.suggestions),
                context=context,
                steps_completed=0,
                total_steps=1,
                error=str(exc),
            )

        parsed = self._parser.parse(
            raw,
            context,
            mode=request.mode,
            existing_elements=request.current_elements,
        )
        return GenerationResult(
            success=True,
            elements=parsed.elements,
            suggestions=_dedupe(parsed.suggestions),
            reasoning=parsed.reasoning,
            context=context,
            steps_completed=1,
            total_steps=1,
            orchestrated=False,
            raw_backend_response=raw,
        )

    def _orchestrate(
        self,
        request: GenerationRequest,
        cancel_event: threading.Event | None,
    ) -> GenerationResult:
        steps = self._plan(request)
        accumulated: list[Element] = list(request.current_elements)
        outcomes: list[StepOutcome] = []
        cancelled = False

        for step in steps:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.info(
                    "Orchestration cancelled",
                    extra={
                        "user_id": request.user_id,
                        "executed_steps": len(outcomes),
                        "total_steps": len(steps),
                    },
                )
                break
            outcome = self._execute_step(request.user_id, step, accumulated)
            outcomes.append(outcome)
            if outcome.succeeded and outcome.parsed is not None:
                accumulated.extend(outcome.parsed.elements)

        return self._synthesize(request, steps, outcomes, accumulated, cancelled=cancelled)

    def _plan(self, request: GenerationRequest) -> tuple[PlanStep, ...]:
        context = analyze_page_context(request.current_elements)
        steps = self._planner.plan(request.instruction, context)
        if not steps:
            steps = (
                PlanStep(instruction_text=request.instruction, priority=1, kind=StepKind.generate),
            )
        logger.info(
            "Planned request",
            extra={
                "user_id": request.user_id,
                "steps": [step.instruction_text for step in steps],
            },
        )
        return steps

    def _execute_step(
        self,
        user_id: str,
        step: PlanStep,
        accumulated: Sequence[Element],
    ) -> StepOutcome:
        context = analyze_page_context(accumulated)
        history = self._store.recent_steps(user_id, HISTORY_LIMIT)
        prompt = compile_prompt(context, ActionMode.generate, step.instruction_text, history=history)
        try:
            raw = self._client.send(prompt.system_directive, prompt.user_directive)
        except BackendError as exc:
            self._store.append_step(user_id, step.instruction_text, succeeded=False)
            logger.warning(
                "Plan step failed",
                exc_info=True,
                extra={"user_id": user_id, "priority": step.priority, "error": str(exc)},
            )
            return StepOutcome(step=step, succeeded=False, error=str(exc))

        parsed = self._parser.parse(raw, context)
        self._store.append_step(user_id, step.instruction_text, succeeded=True)
        logger.info(
            "Plan step completed",
            extra={
                "user_id": user_id,
                "priority": step.priority,
                "elements": len(parsed.elements),
                "strategy": parsed.strategy,
            },
        )
        return StepOutcome(step=step, succeeded=True, parsed=parsed, raw=raw)

    def _synthesize(
        self,
        request: GenerationRequest,
        steps: Sequence[PlanStep],
        outcomes: Sequence[StepOutcome],
        accumulated: Sequence[Element],
        *,
        cancelled: bool = False,
    ) -> GenerationResult:
        succeeded = [o for o in outcomes if o.succeeded and o.parsed is not None]
        elements = [element for o in succeeded for element in o.parsed.elements]
        context = analyze_page_context(accumulated)
        raw = "\n\n".join(o.raw for o in outcomes if o.raw) or None

        if not succeeded:
            if cancelled and not outcomes:
                error = "Request cancelled before any step ran"
            else:
                failures = "; ".join(o.error for o in outcomes if o.error)
                error = f"No plan steps succeeded: {failures}" if failures else "No plan steps succeeded"
            return GenerationResult(
                success=False,
                suggestions=list(context.suggestions),
                context=context,
                steps_completed=0,
                total_steps=len(steps),
                orchestrated=True,
                error=error,
                raw_backend_response=raw,
            )

        reasoning = f"Completed {len(succeeded)} of {len(steps)} steps for: {request.instruction}"
        if cancelled:
            reasoning += " (cancelled before the remaining steps)"
        return GenerationResult(
            success=True,
            elements=elements,
            suggestions=_dedupe(s for o in succeeded for s in o.parsed.suggestions),
            reasoning=reasoning,
            context=context,
            steps_completed=len(succeeded),
            total_steps=len(steps),
            orchestrated=True,
            raw_backend_response=raw,
        )

    def _record_prompt(
        self,
        request: GenerationRequest,
        result: GenerationResult,
        prompt_type: PromptType,
    ) -> None:
        if self._recorder is None:
            return
        try:
            self._recorder.record(
                PromptRecord(
                    user_id=request.user_id,
                    prompt_type=prompt_type,
                    prompt_text=request.instruction,
                    response_summary=_summarise_elements(result.elements),
                )
            )
        except Exception as exc:
            logger.warning(
                "Failed to record prompt (non-fatal)",
                exc_info=True,
                extra={"user_id": request.user_id, "error": str(exc)},
            )


def _dedupe(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _summarise_elements(elements: Sequence[Element]) -> str:
    types = [element.type.value for element in elements]
    shown = ", ".join(types[:MAX_SUMMARY_TYPES])
    if len(types) > MAX_SUMMARY_TYPES:
        shown += ", ..."
    return f"{len(types)} elements: {shown}" if types else "0 elements"


__all__ = ["GenerationOrchestrator", "StepOutcome"]
