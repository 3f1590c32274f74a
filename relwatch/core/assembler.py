"""Rendering of categorized items into chat payloads.

Payloads use Telegram's HTML subset and never exceed the channel's
message length ceiling.
"""

import html
from collections.abc import Sequence
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from .models import CategorizedItem

TELEGRAM_MAX_LENGTH = 4096
DIVIDER = "┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄"
ELLIPSIS = "…"


def escape_text(text: str) -> str:
    """Escape text for embedding in an HTML payload body."""
    return html.escape(text, quote=False)


def escape_attr(text: str) -> str:
    """Escape text for embedding in a double-quoted HTML attribute."""
    return html.escape(text, quote=True)


def escape_within(text: str, limit: int) -> str:
    """Escape the longest prefix of text whose escaped form fits in limit."""
    pieces = []
    used = 0
    for char in text:
        piece = escape_text(char)
        if used + len(piece) > limit:
            break
        pieces.append(piece)
        used += len(piece)
    return "".join(pieces)


class NotificationAssembler:
    """Turns categorized items into one or more bounded-length payloads."""

    def __init__(
        self,
        max_length: int = TELEGRAM_MAX_LENGTH,
        lang: str = "English",
        tz: str = "UTC",
    ):
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self.max_length = max_length
        self.lang = lang
        self.tz = ZoneInfo(tz)

    def format_date(self, when: datetime | None) -> str:
        """Render a timestamp as 'YYYY-MM-DD HH:MM:SS' in the configured zone."""
        if when is None:
            return ""
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return when.astimezone(self.tz).strftime("%Y-%m-%d %H:%M:%S")

    def header(self, repo: str) -> str:
        return f"<b>{escape_text(repo)}</b>"

    def _item_lines(self, item: CategorizedItem) -> list[tuple[str, str | None]]:
        """Rendered lines of one item, each paired with its raw bullet text."""
        tag = escape_text(item.identifier)
        date = self.format_date(item.published_at)
        if item.url:
            link = f'<a href="{escape_attr(item.url)}">{tag}</a>'
        else:
            link = tag
        lines: list[tuple[str, str | None]] = [(f"{date}  {link}" if date else link, None)]

        for group in item.categories:
            if not group.items:
                continue
            lines.append(("", None))
            lines.append(
                (f"{group.type.emoji} <b>{escape_text(group.type.label(self.lang))}</b>", None)
            )
            for entry in group.items:
                lines.append((f"• {escape_text(entry)}", entry))

        return lines

    def format_item(self, item: CategorizedItem) -> str:
        """Render one item: date and link line, then its category groups."""
        return "\n".join(text for text, _ in self._item_lines(item))

    def format_message(self, repo: str, items: Sequence[CategorizedItem]) -> str:
        """Render every item under a single repo header."""
        parts = [self.header(repo)]
        for index, item in enumerate(items):
            if index > 0:
                parts.append(f"\n{DIVIDER}")
            parts.append("")
            parts.append(self.format_item(item))
        return "\n".join(parts)

    def fit_item(self, repo: str, item: CategorizedItem) -> str:
        """Render one item under its own header within max_length.

        Trailing lines are dropped whole, so no entity or tag is ever cut.
        The last bullet that still has room is shortened from its raw text
        and marked with an ellipsis.
        """
        prefix = f"{self.header(repo)}\n\n"
        lines = self._item_lines(item)
        kept = [text for text, _ in lines]
        message = prefix + "\n".join(kept)
        if len(message) <= self.max_length:
            return message

        for _, entry in reversed(lines[1:]):
            kept.pop()
            if entry is None:
                continue
            body = prefix + "\n".join(kept)
            room = self.max_length - len(body) - len("\n• ") - len(ELLIPSIS)
            shortened = escape_within(entry, room)
            if shortened:
                return f"{body}\n• {shortened}{ELLIPSIS}"

        message = prefix + kept[0]
        if len(message) <= self.max_length:
            return message
        # Even the link line is too long: plain text only
        return escape_within(f"{repo}\n\n{item.identifier}", self.max_length)

    def split_messages(self, repo: str, items: Sequence[CategorizedItem]) -> list[str]:
        """Render items as payloads no longer than max_length.

        One payload when everything fits; otherwise one payload per item,
        each with its own header and shortened by fit_item if needed.
        """
        if not items:
            return []

        full = self.format_message(repo, items)
        if len(full) <= self.max_length:
            return [full]

        return [self.fit_item(repo, item) for item in items]
