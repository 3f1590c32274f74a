"""GitHub source adapter.

Implements SourcePort by querying the GitHub REST API for releases, tags
and commits. Normalizes GitHub payloads into core domain models.
"""

import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from relwatch.core.models import (
    CommitInfo,
    ListingResponse,
    ListingStatus,
    RemoteItem,
)
from relwatch.core.ports import SourcePort

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable timestamp from GitHub: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GitHubSourceAdapter(SourcePort):
    """GitHub-backed release and tag source via REST API."""

    def __init__(
        self,
        token: str = "",
        api_url: str = "https://api.github.com",
        web_url: str = "https://github.com",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize GitHub adapter.

        Args:
            token: Optional bearer token. Unauthenticated access works with
                a much lower rate limit.
            api_url: Base URL for the GitHub API.
            web_url: Base URL for links shown in notifications.
            timeout: Request timeout in seconds.
            client: Preconfigured client, mainly for tests.
        """
        self.api_url = api_url.rstrip("/")
        self.web_url = web_url.rstrip("/")
        self.token = token
        self.client = client or httpx.AsyncClient(
            base_url=self.api_url,
            headers=self._get_headers(),
            timeout=timeout,
        )

    def _get_headers(self) -> dict[str, str]:
        """Build request headers."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.client.aclose()

    async def close(self) -> None:
        """Close the httpx client and clean up resources."""
        await self.client.aclose()

    async def list_releases(
        self, repo: str, cache_token: str | None = None, per_page: int = 30
    ) -> ListingResponse:
        """Return the newest page of releases."""
        response = await self._conditional_get(
            repo, f"/repos/{repo}/releases", cache_token, per_page
        )
        if isinstance(response, ListingResponse):
            return response

        items = []
        for raw in response.json():
            item = self._parse_release(raw)
            if item:
                items.append(item)

        return ListingResponse(
            status=ListingStatus.OK,
            items=tuple(items),
            cache_token=response.headers.get("etag"),
            status_code=response.status_code,
        )

    async def list_tags(
        self, repo: str, cache_token: str | None = None, per_page: int = 30
    ) -> ListingResponse:
        """Return the newest page of tags."""
        response = await self._conditional_get(
            repo, f"/repos/{repo}/tags", cache_token, per_page
        )
        if isinstance(response, ListingResponse):
            return response

        items = []
        for raw in response.json():
            item = self._parse_tag(repo, raw)
            if item:
                items.append(item)

        return ListingResponse(
            status=ListingStatus.OK,
            items=tuple(items),
            cache_token=response.headers.get("etag"),
            status_code=response.status_code,
        )

    async def compare_commits(
        self, repo: str, base: str, head: str
    ) -> list[CommitInfo]:
        """Return commits in base...head, oldest first."""
        path = f"/repos/{repo}/compare/{quote(base, safe='')}...{quote(head, safe='')}"
        try:
            response = await self.client.get(path)
        except httpx.HTTPError as e:
            logger.error(f"[{repo}] Compare request failed: {e}")
            return []

        if not response.is_success:
            logger.error(f"[{repo}] Compare API error: {response.status_code}")
            return []

        data = response.json()
        return [self._parse_commit(raw) for raw in data.get("commits", [])]

    async def list_commits(
        self, repo: str, ref: str, limit: int = 50
    ) -> list[CommitInfo]:
        """Return up to `limit` most recent commits reachable from ref."""
        try:
            response = await self.client.get(
                f"/repos/{repo}/commits",
                params={"sha": ref, "per_page": limit},
            )
        except httpx.HTTPError as e:
            logger.error(f"[{repo}] Commits request failed: {e}")
            return []

        if not response.is_success:
            logger.error(f"[{repo}] Commits API error: {response.status_code}")
            return []

        return [self._parse_commit(raw) for raw in response.json()]

    async def get_commit_date(self, repo: str, sha: str) -> datetime | None:
        """Return the author date of a single commit."""
        try:
            response = await self.client.get(f"/repos/{repo}/commits/{sha}")
        except httpx.HTTPError as e:
            logger.warning(f"[{repo}] Commit lookup failed for {sha}: {e}")
            return None

        if not response.is_success:
            logger.warning(f"[{repo}] Commit lookup error for {sha}: {response.status_code}")
            return None

        return self._parse_commit(response.json()).authored_at

    async def _conditional_get(
        self,
        repo: str,
        path: str,
        cache_token: str | None,
        per_page: int,
    ) -> httpx.Response | ListingResponse:
        """GET a listing page, mapping every non-200 outcome to a ListingResponse."""
        headers = {"If-None-Match": cache_token} if cache_token else {}
        try:
            response = await self.client.get(
                path, params={"per_page": per_page}, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"[{repo}] GitHub request failed: {e}")
            return ListingResponse(status=ListingStatus.ERROR, cache_token=cache_token)

        if response.status_code == 304:
            return ListingResponse(
                status=ListingStatus.NOT_MODIFIED,
                cache_token=cache_token,
                status_code=304,
            )

        if self._is_rate_limited(response):
            return ListingResponse(
                status=ListingStatus.RATE_LIMITED,
                cache_token=cache_token,
                rate_limit_reset=self._rate_limit_reset(response),
                status_code=response.status_code,
            )

        if response.status_code != 200:
            logger.error(
                f"[{repo}] GitHub API error: {response.status_code}",
                extra={"repo": repo, "response": response.text[:200]},
            )
            return ListingResponse(
                status=ListingStatus.ERROR,
                cache_token=cache_token,
                status_code=response.status_code,
            )

        return response

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        return (
            response.headers.get("x-ratelimit-remaining") == "0"
            or "retry-after" in response.headers
            or "rate limit" in response.text.lower()
        )

    @staticmethod
    def _rate_limit_reset(response: httpx.Response) -> datetime | None:
        reset = response.headers.get("x-ratelimit-reset")
        if reset:
            try:
                return datetime.fromtimestamp(int(reset), tz=timezone.utc)
            except ValueError:
                logger.debug(f"Ignoring malformed x-ratelimit-reset: {reset!r}")
        retry_after = response.headers.get("retry-after")
        if retry_after and retry_after.isdigit():
            return datetime.fromtimestamp(
                datetime.now(timezone.utc).timestamp() + int(retry_after),
                tz=timezone.utc,
            )
        return None

    @staticmethod
    def _parse_release(raw: dict[str, Any]) -> RemoteItem | None:
        """Parse a GitHub release object."""
        tag = raw.get("tag_name")
        if not tag:
            return None
        return RemoteItem(
            identifier=tag,
            body=raw.get("body") or "",
            published_at=parse_timestamp(raw.get("published_at") or raw.get("created_at")),
            url=raw.get("html_url") or "",
            name=raw.get("name"),
            is_draft=bool(raw.get("draft", False)),
            is_prerelease=bool(raw.get("prerelease", False)),
        )

    def _parse_tag(self, repo: str, raw: dict[str, Any]) -> RemoteItem | None:
        """Parse a GitHub tag object."""
        name = raw.get("name")
        if not name:
            return None
        return RemoteItem(
            identifier=name,
            url=f"{self.web_url}/{repo}/releases/tag/{quote(name, safe='')}",
            commit_sha=(raw.get("commit") or {}).get("sha"),
        )

    @staticmethod
    def _parse_commit(raw: dict[str, Any]) -> CommitInfo:
        """Parse a GitHub commit object."""
        commit = raw.get("commit") or {}
        author = commit.get("author") or {}
        return CommitInfo(
            sha=raw.get("sha", ""),
            message=commit.get("message") or "",
            authored_at=parse_timestamp(author.get("date")),
        )
