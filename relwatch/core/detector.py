"""Change detection against the stored tracking marker.

The sentinel scan and the time-cutoff fallback are written once and
shared by release and tag subscriptions; the only per-mode parts are how
an item's identifier and timestamp are read.
"""

import dataclasses
import logging
import math
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import TypeVar

from .models import (
    ListingStatus,
    ReconciliationResult,
    RemoteItem,
    Subscription,
    SubscriptionMode,
    TrackingMarker,
)
from .ports import SourcePort

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 30


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def scan_for_sentinel(
    items: Sequence[T],
    sentinel: str,
    identifier_of: Callable[[T], str],
) -> tuple[list[T], bool]:
    """Collect items newest to oldest until the sentinel is met.

    Returns:
        (collected items newest first, whether the sentinel was found)
    """
    collected: list[T] = []
    for item in items:
        if identifier_of(item) == sentinel:
            return collected, True
        collected.append(item)
    return collected, False


def apply_time_cutoff(
    candidates: Sequence[T],
    cutoff: datetime | None,
    timestamp_of: Callable[[T], datetime | None],
) -> list[T]:
    """Keep candidates timestamped strictly after the cutoff.

    Candidates without a timestamp cannot be placed and are dropped.
    Without a cutoff nothing can be placed, so nothing is kept.
    """
    if cutoff is None:
        return []

    cutoff = _as_utc(cutoff)
    kept: list[T] = []
    for item in candidates:
        ts = timestamp_of(item)
        if ts is not None and _as_utc(ts) > cutoff:
            kept.append(item)
    return kept


def marker_cutoff(marker: TrackingMarker) -> datetime | None:
    """Cutoff used when the sentinel is gone: last item time, else last poll."""
    return marker.last_timestamp or marker.last_checked_at


def reconcile(
    items: Sequence[T],
    marker: TrackingMarker | None,
    identifier_of: Callable[[T], str],
    timestamp_of: Callable[[T], datetime | None],
    key: str = "",
) -> list[T]:
    """Decide which of the newest-first `items` are new relative to `marker`.

    - No prior identifier: only the newest item (baseline seeding).
    - Sentinel found: everything above it, newest first.
    - Sentinel missing: everything above the end of the page, bounded by
      the marker's time cutoff. With no cutoff recorded, nothing.
    """
    if marker is None or not marker.last_identifier:
        return list(items[:1])

    collected, found = scan_for_sentinel(items, marker.last_identifier, identifier_of)
    if found or not collected:
        return collected

    prefix = f"[{key}] " if key else ""
    cutoff = marker_cutoff(marker)
    if cutoff is None:
        logger.warning(
            f"{prefix}Last seen {marker.last_identifier!r} not found in listing "
            f"and no timestamp is recorded; marker left unchanged"
        )
        return []

    logger.warning(
        f"{prefix}Last seen {marker.last_identifier!r} not found in listing, "
        f"using time cutoff: {cutoff.isoformat()}"
    )
    kept = apply_time_cutoff(collected, cutoff, timestamp_of)
    if not kept:
        logger.warning(
            f"{prefix}No listed item is newer than the cutoff; marker left unchanged"
        )
    return kept


def _identifier(item: RemoteItem) -> str:
    return item.identifier


def _published_at(item: RemoteItem) -> datetime | None:
    return item.published_at


def _needs_commit_dates(
    subscription: Subscription, items: Sequence[RemoteItem], marker: TrackingMarker | None
) -> bool:
    """Whether reconcile will fall back to a time cutoff over undated tags."""
    if subscription.mode is not SubscriptionMode.TAG:
        return False
    if marker is None or not marker.last_identifier or marker_cutoff(marker) is None:
        return False
    return all(item.identifier != marker.last_identifier for item in items)


class ChangeDetector:
    """Fetches the current listing and reconciles it against the marker.

    Never writes state: the run service commits the returned cache token
    and the new marker only once delivery succeeded.
    """

    def __init__(self, source: SourcePort, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.source = source
        self.page_size = page_size

    async def detect(
        self, subscription: Subscription, marker: TrackingMarker | None
    ) -> ReconciliationResult:
        """Return the new items for one subscription, newest first."""
        stored_token = marker.cache_token if marker else None
        repo = subscription.repo

        if subscription.mode is SubscriptionMode.TAG:
            response = await self.source.list_tags(repo, stored_token, self.page_size)
        else:
            response = await self.source.list_releases(repo, stored_token, self.page_size)

        if response.status is ListingStatus.NOT_MODIFIED:
            logger.debug(f"[{subscription.key}] Not modified")
            return ReconciliationResult(new_items=(), cache_token=stored_token, skipped=True)

        if response.status is ListingStatus.RATE_LIMITED:
            self._log_rate_limit(subscription, response.rate_limit_reset)
            return ReconciliationResult(new_items=(), cache_token=stored_token, skipped=True)

        if response.status is not ListingStatus.OK:
            logger.error(
                f"[{subscription.key}] Listing fetch failed "
                f"(status {response.status_code}), skipping this cycle"
            )
            return ReconciliationResult(new_items=(), cache_token=stored_token, skipped=True)

        published = [item for item in response.items if not item.is_draft]
        new_items = await self._reconcile(subscription, published, marker)

        return ReconciliationResult(
            new_items=tuple(new_items),
            cache_token=response.cache_token,
        )

    async def _reconcile(
        self,
        subscription: Subscription,
        items: list[RemoteItem],
        marker: TrackingMarker | None,
    ) -> list[RemoteItem]:
        if _needs_commit_dates(subscription, items, marker):
            items = await self._with_commit_dates(subscription.repo, items)
        return reconcile(items, marker, _identifier, _published_at, subscription.key)

    async def _with_commit_dates(
        self, repo: str, tags: list[RemoteItem]
    ) -> list[RemoteItem]:
        """Fill in published_at for tags from their commit's author date."""
        resolved: list[RemoteItem] = []
        for tag in tags:
            if tag.published_at is not None or not tag.commit_sha:
                resolved.append(tag)
                continue
            when = await self.source.get_commit_date(repo, tag.commit_sha)
            resolved.append(dataclasses.replace(tag, published_at=when))
        return resolved

    @staticmethod
    def _log_rate_limit(subscription: Subscription, reset_at: datetime | None) -> None:
        if reset_at is None:
            logger.warning(f"[{subscription.key}] Rate limited, skipping this cycle")
            return
        wait = (_as_utc(reset_at) - datetime.now(timezone.utc)).total_seconds()
        if wait > 0:
            logger.warning(
                f"[{subscription.key}] Rate limited, reset in {math.ceil(wait)}s"
            )
        else:
            logger.warning(f"[{subscription.key}] Rate limited, skipping this cycle")
