"""Stdout delivery adapter.

Implements DeliveryPort by printing payloads to the terminal. Useful for
dry runs: nothing leaves the machine, yet state is recorded as usual.
"""

import asyncio
import html
import re

from relwatch.core.ports import DeliveryPort

_TAG = re.compile(r"<[^>]+>")


class StdoutDeliveryAdapter(DeliveryPort):
    """Prints payloads to stdout."""

    def __init__(self, plain: bool = True):
        """Initialize stdout delivery adapter.

        Args:
            plain: If True, strip HTML markup before printing.
        """
        self.plain = plain

    async def send(self, payload: str) -> bool:
        text = self._to_plain(payload) if self.plain else payload
        await asyncio.to_thread(print, self._format_block(text))
        return True

    @staticmethod
    def _to_plain(payload: str) -> str:
        return html.unescape(_TAG.sub("", payload))

    @staticmethod
    def _format_block(text: str) -> str:
        return "\n".join(["=" * 80, text, "=" * 80])
