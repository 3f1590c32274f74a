"""Run loop for the release notifier.

This module implements one pass over all subscriptions: detect new
items, build notes for tags, categorize, deliver, and record what was
delivered.
"""

import asyncio
import dataclasses
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from .assembler import NotificationAssembler
from .categorizer import Categorizer
from .commit_range import CommitRangeResolver
from .detector import ChangeDetector
from .models import (
    RemoteItem,
    RunResult,
    Subscription,
    SubscriptionMode,
    SubscriptionOutcome,
    TrackingMarker,
)
from .ports import DeliveryPort, RunPort, StateStorePort

logger = logging.getLogger(__name__)


class RunService(RunPort):
    """Implements the run-once logic.

    Subscriptions are processed strictly one at a time. The state mapping
    is loaded once before the first subscription and saved once after the
    last; a subscription's marker only moves after all of its payloads
    were delivered.
    """

    def __init__(
        self,
        subscriptions: Sequence[Subscription],
        store: StateStorePort,
        detector: ChangeDetector,
        resolver: CommitRangeResolver,
        categorizer: Categorizer,
        assembler: NotificationAssembler,
        delivery: DeliveryPort,
    ):
        self.subscriptions = list(subscriptions)
        self.store = store
        self.detector = detector
        self.resolver = resolver
        self.categorizer = categorizer
        self.assembler = assembler
        self.delivery = delivery

    async def run_once(self, cancel: asyncio.Event | None = None) -> RunResult:
        """Process every subscription and persist the resulting state."""
        started_at = datetime.now(timezone.utc)
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        logger.info(
            f"[Check] {started_at.isoformat()} - {len(self.subscriptions)} subscription(s)"
        )

        state = await self.store.load()
        outcomes: list[SubscriptionOutcome] = []
        failed = 0
        cancelled = False

        for subscription in self.subscriptions:
            if cancel is not None and cancel.is_set():
                logger.info("Cancellation requested, stopping before remaining subscriptions")
                cancelled = True
                break

            try:
                outcome = await self.process_subscription(subscription, state)
            except Exception as e:
                failed += 1
                logger.error(
                    f"[{subscription.key}] Unexpected error: {e}",
                    exc_info=True,
                )
                outcome = SubscriptionOutcome(key=subscription.key, error=str(e))
            outcomes.append(outcome)

        await self.store.save(state)

        elapsed_ms = (loop.time() - start_time) * 1000
        notified = sum(1 for outcome in outcomes if outcome.delivered)
        skipped = sum(1 for outcome in outcomes if outcome.skipped)
        logger.info(
            f"[Check] Done in {elapsed_ms:.0f}ms. Subscriptions: {len(self.subscriptions)}, "
            f"notified: {notified}, skipped: {skipped}, failed: {failed}"
        )

        return RunResult(
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            processed=len(outcomes),
            notified=notified,
            failed=failed,
            skipped=skipped,
            outcomes=tuple(outcomes),
            cancelled=cancelled,
        )

    async def process_subscription(
        self, subscription: Subscription, state: dict[str, TrackingMarker]
    ) -> SubscriptionOutcome:
        """Run the pipeline for one subscription, updating `state` in place.

        Raises:
            Exception: Anything unexpected; the caller counts it as a failure.
        """
        key = subscription.key
        marker = state.get(key)
        now = datetime.now(timezone.utc)

        result = await self.detector.detect(subscription, marker)

        if not result.new_items:
            logger.info(f"[{key}] No new items")
            if (
                not result.skipped
                and result.cache_token
                and result.cache_token != (marker.cache_token if marker else None)
            ):
                state[key] = dataclasses.replace(
                    marker or TrackingMarker(),
                    cache_token=result.cache_token,
                    last_checked_at=now,
                )
            return SubscriptionOutcome(key=key, skipped=result.skipped)

        logger.info(f"[{key}] Found {len(result.new_items)} new item(s)")

        items = await self._chronological(subscription, result.new_items, marker)

        categorized = []
        for item in items:
            categorized.append(await self.categorizer.categorize(item))

        payloads = self.assembler.split_messages(subscription.repo, categorized)

        for index, payload in enumerate(payloads, 1):
            if not await self.delivery.send(payload):
                logger.error(
                    f"[{key}] Failed to deliver message {index}/{len(payloads)}, "
                    f"will retry next run"
                )
                return SubscriptionOutcome(key=key, new_items=len(items))

        newest = items[-1]
        state[key] = TrackingMarker(
            last_identifier=newest.identifier,
            last_timestamp=newest.published_at,
            cache_token=result.cache_token,
            last_checked_at=now,
        )
        logger.info(f"[{key}] Notified, latest: {newest.identifier}")

        return SubscriptionOutcome(
            key=key,
            new_items=len(items),
            delivered=True,
            marker_committed=True,
        )

    async def _chronological(
        self,
        subscription: Subscription,
        new_items: Sequence[RemoteItem],
        marker: TrackingMarker | None,
    ) -> list[RemoteItem]:
        """Oldest-first items, with commit-log notes for tag subscriptions."""
        if subscription.mode is SubscriptionMode.TAG:
            previous = marker.last_identifier if marker and marker.last_identifier else None
            return await self.resolver.resolve(subscription.repo, new_items, previous)
        return list(reversed(new_items))
