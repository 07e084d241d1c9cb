"""Plain-text cleaning for element content."""

from __future__ import annotations

import re

_TAG_RE = re.compile(r"<[^>]*>")
_ANGLE_RE = re.compile(r"[<>]")

_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)


def _decode_entities(text: str) -> str:
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def _clean_once(text: str) -> str:
    text = _decode_entities(text)
    text = _TAG_RE.sub("", text)
    # Unpaired brackets left after tag removal ("a < b", "<b" at a cut-off).
    text = _ANGLE_RE.sub("", text)
    return text.strip()


def sanitize_content(content: str) -> str:
    """Strip markup and decode the basic HTML entities.

    Cleaning is repeated until the text stops changing, so encoded markup
    such as ``&lt;b&gt;`` cannot survive as a tag after decoding and
    ``sanitize_content(sanitize_content(x)) == sanitize_content(x)``.
    """
    if not content:
        return ""
    current = content
    while True:
        cleaned = _clean_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


__all__ = ["sanitize_content"]
