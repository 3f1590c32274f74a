"""Categorization with a guaranteed local fallback."""

import logging
import time

from .heuristics import fallback_categories
from .models import CategorizedItem, RemoteItem
from .ports import CategorizerPort

logger = logging.getLogger(__name__)


class Categorizer:
    """Wraps a CategorizerPort so that categorization never fails.

    Model errors and empty model output both fall back to keyword
    heuristics over the raw body. With no port configured the heuristics
    are used directly.
    """

    def __init__(self, engine: CategorizerPort | None = None):
        self.engine = engine

    async def categorize(self, item: RemoteItem) -> CategorizedItem:
        base = CategorizedItem(
            identifier=item.identifier,
            published_at=item.published_at,
            url=item.url,
        )

        if not item.body or not item.body.strip():
            return base

        if self.engine is None:
            return self._fallback(item)

        start = time.monotonic()
        try:
            result = await self.engine.categorize(item)
        except Exception as e:
            elapsed_ms = (time.monotonic() - start) * 1000
            logger.error(
                f"Categorization failed for {item.identifier} after {elapsed_ms:.0f}ms: {e}",
                exc_info=True,
            )
            return self._fallback(item)

        elapsed_ms = (time.monotonic() - start) * 1000
        groups = tuple(group for group in result.categories if group.items)
        if not groups:
            logger.warning(f"Empty categories for {item.identifier}, using fallback")
            return self._fallback(item)

        logger.info(
            f"Categorized {item.identifier} in {elapsed_ms:.0f}ms ({len(groups)} categories)"
        )
        return CategorizedItem(
            identifier=item.identifier,
            published_at=item.published_at,
            url=item.url,
            categories=groups,
        )

    @staticmethod
    def _fallback(item: RemoteItem) -> CategorizedItem:
        return CategorizedItem(
            identifier=item.identifier,
            published_at=item.published_at,
            url=item.url,
            categories=fallback_categories(item.body),
        )
