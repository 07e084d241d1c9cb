from __future__ import annotations

from enum import Enum
from typing import Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .element import ElementType


class ContentTheme(str, Enum):
    business = "business"
    portfolio = "portfolio"
    blog = "blog"
    ecommerce = "ecommerce"
    contact = "contact"
    about = "about"
    general = "general"


class LayoutComplexity(str, Enum):
    empty = "empty"
    single_element = "single-element"
    simple = "simple"
    moderate = "moderate"
    complex = "complex"


class PageContext(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    summary: str
    element_types_present: Sequence[ElementType] = Field(default_factory=list)
    type_counts: Mapping[ElementType, int] = Field(default_factory=dict)
    content_themes: Sequence[ContentTheme] = Field(default_factory=list)
    layout_complexity: LayoutComplexity = LayoutComplexity.empty
    suggestions: Sequence[str] = Field(default_factory=list)
    element_count: int = 0
    has_navigation: bool = False
    has_hero: bool = False
    has_footer: bool = False


__all__ = ["ContentTheme", "LayoutComplexity", "PageContext"]
