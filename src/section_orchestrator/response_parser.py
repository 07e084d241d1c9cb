from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from pydantic import ValidationError

from .errors import ResponseParseError
from .models.context import PageContext
from .models.element import Element, ElementType, Position, Size
from .models.generation import ActionMode
from .sanitizer import sanitize_content

logger = logging.getLogger(__name__)

FALLBACK_CONTENT_CHARS = 200
FALLBACK_REASONING = "AI response received but couldn't parse structured data"
FALLBACK_STYLES: Mapping[str, str] = {
    "color": "#333333",
    "fontSize": "16px",
    "fontWeight": "normal",
    "backgroundColor": "#f8f9fa",
    "padding": "20px",
    "textAlign": "left",
    "borderRadius": "8px",
    "border": "1px solid",
    "borderColor": "#e0e0e0",
    "opacity": "1",
}
FALLBACK_POSITION = Position(x=50, y=50)
FALLBACK_SIZE = Size(width=400, height=100)

# (elements key, suggestions key) per action mode.
PAYLOAD_KEYS: Mapping[ActionMode, tuple[str, str]] = {
    ActionMode.generate: ("elements", "suggestions"),
    ActionMode.improve: ("improvedElements", "improvements"),
}


@dataclass
class ParsedResponse:
    elements: list[Element]
    suggestions: list[str]
    reasoning: str
    strategy: str
    raw: str = field(repr=False, default="")


def parse_strict(raw: str) -> dict[str, Any]:
    """Parse the whole text as a JSON object."""
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise ResponseParseError(f"not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ResponseParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_brace_matched(raw: str) -> dict[str, Any]:
    """Parse the first balanced ``{...}`` block embedded in surrounding prose."""
    return parse_strict(extract_braced_block(raw))


def extract_braced_block(raw: str) -> str:
    """Return the substring from the first ``{`` to its matching ``}``.

    Braces inside JSON string literals are not counted.
    """
    start = raw.find("{")
    if start == -1:
        raise ResponseParseError("no opening brace")
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(raw)):
        char = raw[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return raw[start : index + 1]
    raise ResponseParseError("unbalanced braces")


ParseStrategy = Callable[[str], dict[str, Any]]

DEFAULT_STRATEGIES: tuple[tuple[str, ParseStrategy], ...] = (
    ("strict", parse_strict),
    ("brace_matched", parse_brace_matched),
)


class ResponseParser:
    """Turns raw backend text into elements, suggestions and reasoning.

    Strategies run in order and the first one yielding at least one valid
    element wins. When all of them fail a single fallback text element is
    synthesised from the raw text, so :meth:`parse` never raises.
    """

    def __init__(self, strategies: Sequence[tuple[str, ParseStrategy]] = DEFAULT_STRATEGIES) -> None:
        self._strategies = tuple(strategies)

    def parse(
        self,
        raw: str | bytes | None,
        context: PageContext,
        *,
        mode: ActionMode = ActionMode.generate,
        existing_elements: Sequence[Element] = (),
    ) -> ParsedResponse:
        text = _as_text(raw)
        for name, strategy in self._strategies:
            try:
                data = strategy(text)
                parsed = decode_payload(data, context, mode=mode, existing_elements=existing_elements)
            except (ResponseParseError, ValueError, TypeError) as exc:
                logger.debug("Parse strategy failed", extra={"strategy": name, "reason": str(exc)})
                continue
            parsed.strategy = name
            parsed.raw = text
            return parsed

        logger.warning(
            "Falling back to plain text element",
            extra={"response_preview": text[:FALLBACK_CONTENT_CHARS]},
        )
        return build_fallback(text, context)


def decode_payload(
    data: Mapping[str, Any],
    context: PageContext,
    *,
    mode: ActionMode = ActionMode.generate,
    existing_elements: Sequence[Element] = (),
) -> ParsedResponse:
    """Validate an extracted JSON object against the element schema.

    Items that fail validation are dropped individually; a payload left with
    no elements is rejected so the next strategy gets a chance.
    """
    elements_key, suggestions_key = PAYLOAD_KEYS[mode]
    raw_elements = data.get(elements_key)
    if raw_elements is None and mode is ActionMode.improve and existing_elements:
        elements = [element.model_copy() for element in existing_elements]
    else:
        elements = _decode_elements(raw_elements)
    if not elements:
        raise ResponseParseError(f"no valid {elements_key}")

    suggestions = _decode_strings(data.get(suggestions_key))
    if not suggestions:
        suggestions = list(context.suggestions)
    reasoning = data.get("reasoning")
    return ParsedResponse(
        elements=elements,
        suggestions=suggestions,
        reasoning=reasoning if isinstance(reasoning, str) else "",
        strategy="decoded",
    )


def build_fallback(text: str, context: PageContext) -> ParsedResponse:
    element = Element(
        type=ElementType.text,
        content=sanitize_content(text[:FALLBACK_CONTENT_CHARS]),
        styles=dict(FALLBACK_STYLES),
        position=FALLBACK_POSITION.model_copy(),
        size=FALLBACK_SIZE.model_copy(),
    )
    return ParsedResponse(
        elements=[element],
        suggestions=list(context.suggestions),
        reasoning=FALLBACK_REASONING,
        strategy="fallback",
        raw=text,
    )


def _decode_elements(value: Any) -> list[Element]:
    if not isinstance(value, list):
        return []
    elements: list[Element] = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        try:
            elements.append(Element.model_validate(item))
        except ValidationError as exc:
            logger.debug(
                "Dropping invalid element from backend output",
                extra={"element_type": item.get("type"), "errors": exc.error_count()},
            )
    return elements


def _decode_strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    cleaned = (sanitize_content(item) for item in value if isinstance(item, str))
    return [item for item in cleaned if item]


def _as_text(raw: str | bytes | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


__all__ = [
    "DEFAULT_STRATEGIES",
    "FALLBACK_REASONING",
    "ParsedResponse",
    "ResponseParser",
    "build_fallback",
    "decode_payload",
    "extract_braced_block",
    "parse_brace_matched",
    "parse_strict",
]
