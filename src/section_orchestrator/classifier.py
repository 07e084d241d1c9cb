from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

WORD_COUNT_THRESHOLD = 15

COMPLEX_KEYWORDS: tuple[str, ...] = (
    "complete website",
    "full site",
    "entire page",
    "multiple sections",
    "navigation",
    "footer",
    "header",
    "multiple pages",
    "e-commerce",
    "portfolio with",
    "business website with",
    "landing page with",
    "create everything",
    "build complete",
    "make a full",
)


class Complexity(str, Enum):
    simple = "simple"
    complex = "complex"


@dataclass(frozen=True)
class RequestAnalysis:
    complexity: Complexity
    matched_keywords: tuple[str, ...]
    word_count: int


def classify_request(instruction: str) -> RequestAnalysis:
    """Decide whether an instruction needs a multi-step plan."""
    lowered = instruction.lower()
    matched = tuple(keyword for keyword in COMPLEX_KEYWORDS if keyword in lowered)
    word_count = len(instruction.split())
    complexity = Complexity.complex if matched or word_count > WORD_COUNT_THRESHOLD else Complexity.simple
    return RequestAnalysis(complexity=complexity, matched_keywords=matched, word_count=word_count)


__all__ = ["COMPLEX_KEYWORDS", "Complexity", "RequestAnalysis", "classify_request"]
