"""Keyword-based categorization used when the language model is unavailable.

Pure functions: raw release text in, ordered category groups out.
"""

import re

from .models import CategoryGroup, CategoryType

EXCERPT_LENGTH = 500

_BULLET_PREFIXES = ("*", "-", "•")
_BULLET_STRIP = re.compile(r"^[-*•]\s*")

# Checked in order; the first matching rule wins.
_RULES: tuple[tuple[CategoryType, re.Pattern[str]], ...] = (
    (
        CategoryType.FEAT,
        re.compile(r"\b(feat|features?)\b|新增|新功能|支持", re.IGNORECASE),
    ),
    (
        CategoryType.FIX,
        re.compile(r"\b(fix(es|ed)?|bugs?)\b|修复|纠正", re.IGNORECASE),
    ),
    (
        CategoryType.PERF,
        re.compile(r"\b(perf|optimi[sz]e[sd]?|optimi[sz]ations?)\b|性能|优化|提速", re.IGNORECASE),
    ),
    (
        CategoryType.REFACTOR,
        re.compile(r"\brefactor(s|ed|ing)?\b|重构", re.IGNORECASE),
    ),
    (
        CategoryType.DOCS,
        re.compile(r"\b(docs?|readme)\b|文档", re.IGNORECASE),
    ),
)


def infer_category(text: str) -> CategoryType:
    """Classify one line of release text by keyword."""
    for category, pattern in _RULES:
        if pattern.search(text):
            return category
    return CategoryType.OTHER


def bullet_lines(body: str) -> list[str]:
    """Return the text of every bullet line in `body`, markers stripped."""
    lines = []
    for raw in body.splitlines():
        line = raw.strip()
        if not line.startswith(_BULLET_PREFIXES):
            continue
        text = _BULLET_STRIP.sub("", line).strip()
        if text:
            lines.append(text)
    return lines


def fallback_categories(body: str) -> tuple[CategoryGroup, ...]:
    """Group the bullet lines of `body` by inferred category.

    Groups appear in order of their first line. When the body has no
    bullets at all, a single OTHER group holds a truncated excerpt.
    """
    if not body or not body.strip():
        return ()

    grouped: dict[CategoryType, list[str]] = {}
    for line in bullet_lines(body):
        grouped.setdefault(infer_category(line), []).append(line)

    if not grouped:
        return (CategoryGroup(CategoryType.OTHER, (body[:EXCERPT_LENGTH],)),)

    return tuple(CategoryGroup(kind, tuple(lines)) for kind, lines in grouped.items())
