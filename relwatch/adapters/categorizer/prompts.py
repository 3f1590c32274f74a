"""Prompt text and response parsing shared by the categorizer adapters."""

import json
import logging
import re
from typing import Any

from relwatch.core.models import CategoryGroup, CategoryType

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


def build_system_prompt(target_lang: str) -> str:
    """System prompt asking for translated, categorized one-line items."""
    return f"""You translate and categorize software release notes.

Your task:
1. Translate all content to {target_lang}
2. Put each change into exactly ONE category:
   - feat: New features, capabilities, or functionality
   - fix: Bug fixes, error corrections
   - perf: Performance improvements, optimizations
   - refactor: Code restructuring without behavior change
   - docs: Documentation updates
   - other: Everything else (breaking changes, deprecations, etc.)

Rules:
- Each item is a concise one-line description in {target_lang}
- Merge duplicate or near-identical items
- Skip CI/build/dependency-only changes unless significant
- If the input is empty or meaningless, return an empty categories array
- Never wrap the output in markdown code fences
- Return only JSON of this shape:
  {{"categories": [{{"type": "feat", "items": ["..."]}}]}}

Example input:
## What's Changed
* Add dark mode support by @user1
* Fix crash on startup by @user2
* Update README.md by @user3

Example output (shown in English; always answer in {target_lang}):
{{"categories": [
  {{"type": "feat", "items": ["Add dark mode support"]}},
  {{"type": "fix", "items": ["Fix crash on startup"]}},
  {{"type": "docs", "items": ["Update README"]}}
]}}"""


def extract_json(text: str) -> dict[str, Any]:
    """Pull the JSON object out of a model reply.

    Raises:
        ValueError: If the reply holds no parseable JSON object.
    """
    cleaned = _FENCE.sub("", text.strip())
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ValueError(f"Model did not return a JSON object. Output: {text[:200]}")
    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as e:
        raise ValueError(f"Model returned invalid JSON: {e}. Output: {text[:200]}") from e
    if not isinstance(data, dict):
        raise ValueError("Model JSON output is not an object")
    return data


def parse_categories(data: dict[str, Any]) -> tuple[CategoryGroup, ...]:
    """Validate the model's categories and drop empty or unknown entries.

    Raises:
        ValueError: If the categories field is missing or not a list.
    """
    raw_groups = data.get("categories")
    if not isinstance(raw_groups, list):
        raise ValueError("Response missing 'categories' list")

    groups = []
    for raw in raw_groups:
        if not isinstance(raw, dict):
            continue
        try:
            kind = CategoryType(str(raw.get("type", "")).lower())
        except ValueError:
            logger.debug(f"Unknown category type {raw.get('type')!r}, filing under other")
            kind = CategoryType.OTHER
        items = raw.get("items")
        if not isinstance(items, list):
            continue
        group = CategoryGroup(kind, tuple(str(item) for item in items if isinstance(item, str)))
        if group.items:
            groups.append(group)
    return tuple(groups)
