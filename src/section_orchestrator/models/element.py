from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field, field_validator

from ..sanitizer import sanitize_content


class ElementType(str, Enum):
    hero = "hero"
    text = "text"
    button = "button"
    image = "image"
    gallery = "gallery"
    contact = "contact"
    about = "about"
    navigation = "navigation"
    footer = "footer"
    testimonial = "testimonial"
    feature = "feature"


def generate_element_id() -> str:
    return f"ai-generated-{uuid.uuid4().hex[:12]}"


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class Size(BaseModel):
    width: float = 400.0
    height: float = 100.0


class Element(BaseModel):
    """One visual unit on a page.

    ``content`` is always plain text: markup is stripped whenever an element
    is validated, whether it comes from the editor or from backend output.
    """

    id: str = Field(default_factory=generate_element_id)
    type: ElementType
    content: str = ""
    styles: dict[str, str] = Field(default_factory=dict)
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is None or value == "":
            return generate_element_id()
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("content", mode="before")
    @classmethod
    def _sanitize(cls, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            value = str(value)
        return sanitize_content(value)

    @field_validator("styles", mode="before")
    @classmethod
    def _coerce_styles(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, Mapping):
            return {}
        return {str(key): str(item) for key, item in value.items() if item is not None}

    @field_validator("position", "size", mode="before")
    @classmethod
    def _drop_malformed_geometry(cls, value: Any) -> Any:
        # Backends sometimes emit "auto" or lists here; fall back to defaults.
        if isinstance(value, (BaseModel, Mapping)):
            return value
        return {}


__all__ = ["Element", "ElementType", "Position", "Size", "generate_element_id"]
