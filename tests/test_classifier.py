"""Request complexity classifier tests."""

import pytest

from section_orchestrator.classifier import COMPLEX_KEYWORDS, Complexity, classify_request


@pytest.mark.parametrize("keyword", COMPLEX_KEYWORDS)
def test_any_keyword_is_complex(keyword):
    """Every complexity keyword forces the complex path, regardless of case."""
    analysis = classify_request(f"Please {keyword.upper()} now")

    assert analysis.complexity is Complexity.complex
    assert keyword in analysis.matched_keywords


def test_short_plain_instruction_is_simple():
    """A short instruction without keywords is simple."""
    analysis = classify_request("Add a testimonial section")

    assert analysis.complexity is Complexity.simple
    assert analysis.matched_keywords == ()
    assert analysis.word_count == 4


def test_long_instruction_is_complex():
    """More than fifteen words is complex even without keywords."""
    instruction = " ".join(["word"] * 16)

    assert classify_request(instruction).complexity is Complexity.complex
    assert classify_request(" ".join(["word"] * 15)).complexity is Complexity.simple


def test_whitespace_runs_do_not_inflate_word_count():
    """Repeated spaces and newlines count as a single separator."""
    analysis = classify_request("Add   a\n\nbutton")

    assert analysis.word_count == 3
