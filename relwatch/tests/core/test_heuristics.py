"""Tests for keyword-based fallback categorization."""

import pytest

from relwatch.core.heuristics import (
    EXCERPT_LENGTH,
    bullet_lines,
    fallback_categories,
    infer_category,
)
from relwatch.core.models import CategoryType


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("feat: add dark mode", CategoryType.FEAT),
        ("New features for exports", CategoryType.FEAT),
        ("新增 导出功能", CategoryType.FEAT),
        ("Fixed crash on startup", CategoryType.FIX),
        ("Several bugs squashed", CategoryType.FIX),
        ("修复 登录问题", CategoryType.FIX),
        ("Optimized cold start", CategoryType.PERF),
        ("性能 改进", CategoryType.PERF),
        ("Refactoring of the parser", CategoryType.REFACTOR),
        ("Update README", CategoryType.DOCS),
        ("更新文档", CategoryType.DOCS),
        ("Bump version", CategoryType.OTHER),
    ],
)
def test_infer_category(line: str, expected: CategoryType) -> None:
    assert infer_category(line) is expected


def test_first_matching_rule_wins() -> None:
    """A line mentioning both a feature and a fix is filed as a feature."""
    assert infer_category("feat: fix the thing") is CategoryType.FEAT


def test_keywords_match_whole_words_only() -> None:
    assert infer_category("Add debugging output") is CategoryType.OTHER


def test_bullet_lines_strips_markers() -> None:
    body = "## What's Changed\n* Add export\n- Fix crash\n• Tidy docs\nplain text\n*   \n"
    assert bullet_lines(body) == ["Add export", "Fix crash", "Tidy docs"]


def test_groups_in_order_of_first_line() -> None:
    body = "* Fix crash\n* feat: add export\n* Fix typo in output\n* Update docs"

    groups = fallback_categories(body)

    assert [g.type for g in groups] == [CategoryType.FIX, CategoryType.FEAT, CategoryType.DOCS]
    assert groups[0].items == ("Fix crash", "Fix typo in output")


def test_body_without_bullets_becomes_excerpt() -> None:
    body = "A" * (EXCERPT_LENGTH + 100)

    groups = fallback_categories(body)

    assert len(groups) == 1
    assert groups[0].type is CategoryType.OTHER
    assert groups[0].items == ("A" * EXCERPT_LENGTH,)


@pytest.mark.parametrize("body", ["", "   \n  "])
def test_blank_body_has_no_categories(body: str) -> None:
    assert fallback_categories(body) == ()
