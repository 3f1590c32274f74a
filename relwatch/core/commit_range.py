"""Synthetic release notes for tag subscriptions.

Tags carry no release body, so the notes for each new tag are built
from the commits between it and the tag before it.
"""

import dataclasses
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from .models import CommitInfo, RemoteItem
from .ports import SourcePort

logger = logging.getLogger(__name__)

DEFAULT_MAX_COMMITS = 50


def format_commit_log(commits: Sequence[CommitInfo]) -> str:
    """Render commits as bullet lines using each message's subject line."""
    lines = []
    for commit in commits:
        text = commit.message.strip()
        if text:
            lines.append(f"- {text.splitlines()[0].strip()}")
    return "\n".join(lines)


class CommitRangeResolver:
    """Builds commit-log bodies and timestamps for a batch of new tags."""

    def __init__(self, source: SourcePort, max_commits: int = DEFAULT_MAX_COMMITS):
        if max_commits <= 0:
            raise ValueError("max_commits must be positive")
        self.source = source
        self.max_commits = max_commits

    async def resolve(
        self,
        repo: str,
        new_tags: Sequence[RemoteItem],
        previous_tag: str | None,
    ) -> list[RemoteItem]:
        """Attach a commit-log body and a timestamp to every new tag.

        Args:
            repo: Repository in "owner/name" form.
            new_tags: New tags, newest first, as returned by the detector.
            previous_tag: Last notified tag, or None on the first run.

        Returns:
            The same tags, oldest first, with body and published_at set.
            Each tag's range starts at the tag before it in this batch; only
            the oldest one starts at `previous_tag`.
        """
        resolved: list[RemoteItem] = []
        base = previous_tag

        for tag in reversed(new_tags):
            commits = await self._commits_for(repo, base, tag.identifier)
            published_at = await self._tag_timestamp(repo, tag)
            resolved.append(
                dataclasses.replace(
                    tag,
                    body=format_commit_log(commits),
                    published_at=published_at,
                )
            )
            base = tag.identifier

        return resolved

    async def _commits_for(
        self, repo: str, base: str | None, head: str
    ) -> list[CommitInfo]:
        if base is None:
            logger.debug(f"[{repo}] No base for {head}, using its recent history")
            return await self.source.list_commits(repo, head, self.max_commits)

        commits = await self.source.compare_commits(repo, base, head)
        if not commits:
            logger.warning(f"[{repo}] No commits found between {base} and {head}")
        return commits[-self.max_commits:]

    async def _tag_timestamp(self, repo: str, tag: RemoteItem) -> datetime:
        if tag.published_at is not None:
            return tag.published_at

        when = None
        if tag.commit_sha:
            try:
                when = await self.source.get_commit_date(repo, tag.commit_sha)
            except Exception as e:
                logger.warning(f"[{repo}] Commit date lookup failed for {tag.identifier}: {e}")

        if when is None:
            logger.warning(
                f"[{repo}] No commit date for {tag.identifier}, using current time"
            )
            return datetime.now(timezone.utc)
        return when
