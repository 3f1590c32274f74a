"""Port interfaces for the relwatch release notifier.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - SourcePort: Release/tag listings and commit history
   - StateStorePort: Persist tracking markers between runs
   - CategorizerPort: LLM-powered categorization and translation
   - DeliveryPort: Deliver formatted payloads to a chat

2. **Driving Ports** (adapters/external systems call into core)
   - RunPort: Entry point for one pass over all subscriptions
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime

from .models import (
    CategorizedItem,
    CommitInfo,
    ListingResponse,
    RemoteItem,
    RunResult,
    TrackingMarker,
)


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class SourcePort(ABC):
    """Port for reading releases, tags and commits from a forge.

    Implementations must handle:
    - Conditional requests using the cache token
    - Distinguishing rate-limit rejections from other failures
    - Timestamp normalization to timezone-aware UTC
    """

    @abstractmethod
    async def list_releases(
        self, repo: str, cache_token: str | None = None, per_page: int = 30
    ) -> ListingResponse:
        """Fetch the newest page of releases.

        Args:
            repo: Repository in "owner/name" form.
            cache_token: Token from the previous successful fetch, if any.
            per_page: Page size.

        Returns:
            ListingResponse with items newest first. Transport failures are
            reported as ListingStatus.ERROR rather than raised.
        """

    @abstractmethod
    async def list_tags(
        self, repo: str, cache_token: str | None = None, per_page: int = 30
    ) -> ListingResponse:
        """Fetch the newest page of tags.

        Same contract as list_releases. Tag items carry commit_sha and no
        published_at.
        """

    @abstractmethod
    async def compare_commits(
        self, repo: str, base: str, head: str
    ) -> list[CommitInfo]:
        """Return the commits in base...head in the API's natural order.

        Returns:
            List of commits, oldest first. Empty list on failure.
        """

    @abstractmethod
    async def list_commits(
        self, repo: str, ref: str, limit: int = 50
    ) -> list[CommitInfo]:
        """Return up to `limit` most recent commits reachable from ref.

        Returns:
            List of commits, newest first. Empty list on failure.
        """

    @abstractmethod
    async def get_commit_date(self, repo: str, sha: str) -> datetime | None:
        """Return the author timestamp of a commit, or None if unavailable."""


class StateStorePort(ABC):
    """Port for persisting tracking markers between runs.

    The mapping is read and written wholesale: one load at the start of
    a run, one save at the end.
    """

    @abstractmethod
    async def load(self) -> dict[str, TrackingMarker]:
        """Load every stored marker keyed by subscription key.

        Returns:
            Mapping of subscription key to marker. Empty if nothing was
            stored yet.
        """

    @abstractmethod
    async def save(self, markers: dict[str, TrackingMarker]) -> None:
        """Replace the stored mapping with `markers`.

        Raises:
            Exception: If the backing store cannot be written.
        """


class CategorizerPort(ABC):
    """Port for categorizing and translating release notes.

    Implementations may fail or return no categories; the core always
    has a heuristic fallback and never assumes success.
    """

    @abstractmethod
    async def categorize(self, item: RemoteItem) -> CategorizedItem:
        """Categorize the body of a release or synthetic tag note.

        Returns:
            CategorizedItem, possibly with no categories.

        Raises:
            Exception: If the model backend is unavailable or its output
                cannot be parsed.
        """


class DeliveryPort(ABC):
    """Port for delivering one formatted payload to a chat."""

    @abstractmethod
    async def send(self, payload: str) -> bool:
        """Deliver one bounded-length payload.

        Returns:
            True if the channel acknowledged the payload, False otherwise.
        """


# ============================================================================
# DRIVING PORTS (Adapters/external systems call into core)
# ============================================================================


class RunPort(ABC):
    """Port for executing one pass over all subscriptions.

    Driving port: the scheduler or the one-shot entry point invokes
    this on every tick.
    """

    @abstractmethod
    async def run_once(self, cancel: asyncio.Event | None = None) -> RunResult:
        """Detect, categorize, notify and record for every subscription.

        Args:
            cancel: Optional event; once set, no further subscriptions are
                started. The subscription in progress is finished.

        Returns:
            RunResult summarizing the pass.
        """
