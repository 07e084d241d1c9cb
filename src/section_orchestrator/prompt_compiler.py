from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .models.context import ContentTheme, PageContext
from .models.conversation import StepRecord
from .models.element import ElementType
from .models.generation import ActionMode

HISTORY_LIMIT = 2
MAX_INSTRUCTION_CHARS = 2000
MAX_HISTORY_ENTRY_CHARS = 200

THEME_DIRECTION: tuple[tuple[ContentTheme, str], ...] = (
    (ContentTheme.business, "Focus on professional, corporate styling."),
    (ContentTheme.portfolio, "Focus on creative, showcase-oriented design."),
    (ContentTheme.ecommerce, "Focus on conversion-optimized design."),
)

ELEMENT_SPECIFICATION = f"""ELEMENT SPECIFICATIONS:
- Each element needs: id, type, content, styles, position, size
- Element types: {', '.join(element_type.value for element_type in ElementType)}
- Content: MUST be clean text only - NO HTML tags, NO markup, just plain text content
- Styles: color, fontSize, fontWeight, backgroundColor, padding, textAlign, borderRadius, border, borderColor, opacity
- Position: {{x: number, y: number}} (consider existing elements)
- Size: {{width: number, height: number}} (responsive-friendly)

IMPORTANT CONTENT RULES:
- Content field should contain ONLY plain text
- NO HTML tags like <h1>, <p>, <div>, etc.
- NO markup or formatting codes
- Just the actual text content that will be displayed
- Examples: "Welcome to Our Company" not "<h1>Welcome to Our Company</h1>\""""

GENERATE_RESPONSE_FORMAT = """RESPONSE FORMAT:
{
  "elements": [/* array of elements */],
  "suggestions": [/* 3-5 contextual suggestions */],
  "reasoning": "Brief explanation of design choices"
}"""

IMPROVE_RESPONSE_FORMAT = """RESPONSE FORMAT:
{
  "improvedElements": [/* array of improved elements */],
  "improvements": [/* list of specific improvements made */],
  "reasoning": "explanation of optimization choices"
}"""

DESIGN_PRINCIPLES = """DESIGN PRINCIPLES:
1. Maintain visual consistency with existing elements
2. Follow modern web design trends
3. Ensure responsive design considerations
4. Optimize for user experience
5. Use appropriate color schemes and typography"""


@dataclass(frozen=True)
class CompiledPrompt:
    system_directive: str
    user_directive: str


def compile_prompt(
    context: PageContext,
    mode: ActionMode,
    instruction: str,
    history: Sequence[StepRecord] | None = None,
) -> CompiledPrompt:
    """Render the system and user directives sent to the generation backend.

    ``history`` is only passed for steps of a decomposed request; at most the
    two most recent entries are included so prompts stay bounded.
    """
    instruction = _truncate(instruction.strip(), MAX_INSTRUCTION_CHARS)
    if mode is ActionMode.improve:
        return CompiledPrompt(
            system_directive=_improve_system_directive(context),
            user_directive=instruction,
        )
    if history is None:
        user_directive = _direct_user_directive(context, instruction)
    else:
        user_directive = _step_user_directive(context, instruction, history)
    return CompiledPrompt(
        system_directive=_generate_system_directive(context),
        user_directive=user_directive,
    )


def describe_intent(context: PageContext) -> str:
    if context.element_count == 0:
        return "Create a new website."
    if context.element_count < 3:
        return "Expand the existing simple website."
    return "Enhance the existing website."


def theme_direction(context: PageContext) -> str | None:
    for theme, direction in THEME_DIRECTION:
        if theme in context.content_themes:
            return direction
    return None


def _state_block(context: PageContext) -> str:
    return "\n".join(
        [
            f"CURRENT WEBSITE STATE: {context.summary}",
            f"EXISTING ELEMENTS: {_join(t.value for t in context.element_types_present)}",
            f"CONTENT THEMES: {_join(t.value for t in context.content_themes)}",
            f"LAYOUT COMPLEXITY: {context.layout_complexity.value}",
        ]
    )


def _generate_system_directive(context: PageContext) -> str:
    themes = _join(t.value for t in context.content_themes)
    mode_rules = [
        "GENERATION MODE:",
        "- Create new elements that complement the existing website",
        f"- Consider the current layout pattern: {context.layout_complexity.value}",
        f"- Build upon existing themes: {themes}",
        f"- Suggested improvements: {', '.join(list(context.suggestions)[:3])}",
    ]
    direction = theme_direction(context)
    if direction:
        mode_rules.append(f"- Style direction: {direction}")
    return "\n\n".join(
        [
            "You are an expert website builder AI with deep understanding of web design principles.",
            _state_block(context),
            "\n".join(mode_rules),
            DESIGN_PRINCIPLES,
            ELEMENT_SPECIFICATION,
            GENERATE_RESPONSE_FORMAT,
        ]
    )


def _improve_system_directive(context: PageContext) -> str:
    mode_rules = "\n".join(
        [
            "IMPROVEMENT MODE:",
            "- Enhance existing elements without changing core structure",
            "- Focus on better styling, content, and user experience",
            "- Maintain consistency with current design patterns",
            f"- Optimize for the {context.layout_complexity.value} layout pattern",
        ]
    )
    return "\n\n".join(
        [
            "You are an expert website optimizer AI.",
            _state_block(context),
            mode_rules,
            ELEMENT_SPECIFICATION,
            IMPROVE_RESPONSE_FORMAT,
        ]
    )


def _context_hint(context: PageContext) -> str:
    hint = ""
    if context.element_types_present:
        hint += f"Current website has: {_join(t.value for t in context.element_types_present)}. "
    if context.content_themes:
        hint += f"Theme: {_join(t.value for t in context.content_themes)}. "
    hint += f"Layout: {context.layout_complexity.value}. "
    return hint


def _direct_user_directive(context: PageContext, instruction: str) -> str:
    return f"{describe_intent(context)} {_context_hint(context)}User request: {instruction}"


def _step_user_directive(
    context: PageContext,
    instruction: str,
    history: Sequence[StepRecord],
) -> str:
    parts = [f"{describe_intent(context)} {_context_hint(context)}User request: {instruction}"]
    recent = list(history)[-HISTORY_LIMIT:]
    if recent:
        described = ", ".join(_describe_step(record) for record in recent)
        parts.append(f"Previous steps completed: {described}")
    parts.append(f"Current website state: {context.summary}")
    return "\n\n".join(parts)


def _describe_step(record: StepRecord) -> str:
    text = _truncate(record.instruction_text, MAX_HISTORY_ENTRY_CHARS)
    return text if record.succeeded else f"{text} (failed)"


def _join(values) -> str:
    return ", ".join(values) or "none"


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


__all__ = ["CompiledPrompt", "compile_prompt", "describe_intent", "theme_direction"]
