from __future__ import annotations

from collections import Counter
from typing import Sequence

from .models.context import ContentTheme, LayoutComplexity, PageContext
from .models.element import Element, ElementType

MAX_SUGGESTIONS = 5

EMPTY_PAGE_SUMMARY = "Empty website - starting from scratch"
STARTER_SUGGESTIONS = (
    "Add a hero section",
    "Create navigation",
    "Add content sections",
)

THEME_KEYWORDS: tuple[tuple[ContentTheme, tuple[str, ...]], ...] = (
    (ContentTheme.business, ("business", "company", "service")),
    (ContentTheme.portfolio, ("portfolio", "work", "project")),
    (ContentTheme.blog, ("blog", "article", "post")),
    (ContentTheme.ecommerce, ("shop", "product", "buy")),
    (ContentTheme.contact, ("contact", "email", "phone")),
    (ContentTheme.about, ("about", "team", "story")),
)

LAYOUT_SUGGESTIONS: dict[LayoutComplexity, tuple[str, ...]] = {
    LayoutComplexity.empty: (
        "Add a hero section with compelling headline",
        "Create navigation menu",
        "Add main content area",
    ),
    LayoutComplexity.simple: (
        "Add more content sections",
        "Include call-to-action buttons",
        "Add footer with links",
    ),
    LayoutComplexity.moderate: (
        "Optimize existing content",
        "Add interactive elements",
        "Improve visual hierarchy",
    ),
}

THEME_SUGGESTIONS: dict[ContentTheme, tuple[str, ...]] = {
    ContentTheme.business: (
        "Add testimonials section",
        "Include service descriptions",
        "Add team member profiles",
    ),
    ContentTheme.portfolio: (
        "Add project gallery",
        "Include skills section",
        "Add client testimonials",
    ),
    ContentTheme.ecommerce: (
        "Add product showcase",
        "Include pricing section",
        "Add customer reviews",
    ),
}

MISSING_ELEMENT_SUGGESTIONS: tuple[tuple[ElementType, str], ...] = (
    (ElementType.hero, "Add hero section"),
    (ElementType.navigation, "Create navigation menu"),
    (ElementType.footer, "Add footer section"),
    (ElementType.button, "Add call-to-action buttons"),
)


def analyze_page_context(elements: Sequence[Element]) -> PageContext:
    """Summarise the current page so prompts can be steered by it.

    Total and deterministic: an empty page yields the starter suggestions.
    """
    if not elements:
        return PageContext(
            summary=EMPTY_PAGE_SUMMARY,
            layout_complexity=LayoutComplexity.empty,
            suggestions=list(STARTER_SUGGESTIONS),
        )

    type_counts = Counter(element.type for element in elements)
    themes = extract_content_themes(elements)
    layout = classify_layout(len(elements))
    return PageContext(
        summary=_summarise(type_counts, themes, layout),
        element_types_present=list(type_counts),
        type_counts=dict(type_counts),
        content_themes=themes,
        layout_complexity=layout,
        suggestions=_suggest(type_counts, themes, layout),
        element_count=len(elements),
        has_navigation=ElementType.navigation in type_counts,
        has_hero=ElementType.hero in type_counts,
        has_footer=ElementType.footer in type_counts,
    )


def extract_content_themes(elements: Sequence[Element]) -> list[ContentTheme]:
    text = " ".join(element.content.lower() for element in elements)
    themes = [
        theme
        for theme, keywords in THEME_KEYWORDS
        if any(keyword in text for keyword in keywords)
    ]
    return themes or [ContentTheme.general]


def classify_layout(element_count: int) -> LayoutComplexity:
    if element_count == 0:
        return LayoutComplexity.empty
    if element_count == 1:
        return LayoutComplexity.single_element
    if element_count <= 3:
        return LayoutComplexity.simple
    if element_count <= 6:
        return LayoutComplexity.moderate
    return LayoutComplexity.complex


def _summarise(
    type_counts: Counter[ElementType],
    themes: Sequence[ContentTheme],
    layout: LayoutComplexity,
) -> str:
    type_summary = ", ".join(
        f"{count} {element_type.value}{'s' if count > 1 else ''}"
        for element_type, count in type_counts.items()
    )
    theme_summary = f" ({', '.join(theme.value for theme in themes)} theme)" if themes else ""
    return f"{layout.value} layout with {type_summary}{theme_summary}"


def _suggest(
    type_counts: Counter[ElementType],
    themes: Sequence[ContentTheme],
    layout: LayoutComplexity,
) -> list[str]:
    candidates: list[str] = list(LAYOUT_SUGGESTIONS.get(layout, ()))
    for theme in themes:
        candidates.extend(THEME_SUGGESTIONS.get(theme, ()))
    for element_type, suggestion in MISSING_ELEMENT_SUGGESTIONS:
        if element_type not in type_counts:
            candidates.append(suggestion)
    return list(dict.fromkeys(candidates))[:MAX_SUGGESTIONS]


__all__ = [
    "EMPTY_PAGE_SUMMARY",
    "STARTER_SUGGESTIONS",
    "analyze_page_context",
    "classify_layout",
    "extract_content_themes",
]
