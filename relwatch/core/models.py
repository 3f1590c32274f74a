"""Domain models for the relwatch release notifier.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SubscriptionMode(Enum):
    """What a subscription tracks in the upstream repository."""

    RELEASE = "release"
    TAG = "tag"


@dataclass(frozen=True)
class Subscription:
    """A repository to watch and the listing it is watched through."""

    repo: str  # "owner/name"
    mode: SubscriptionMode = SubscriptionMode.RELEASE

    def __post_init__(self) -> None:
        """Validate subscription invariants on creation."""
        owner, sep, name = self.repo.partition("/")
        if not sep or not owner.strip() or not name.strip() or "/" in name:
            raise ValueError(f"repo must be in 'owner/name' form, got {self.repo!r}")

    @property
    def key(self) -> str:
        """State key for this subscription.

        Release subscriptions keep the bare repo name so that state files
        written before tag mode existed stay valid.
        """
        if self.mode is SubscriptionMode.RELEASE:
            return self.repo
        return f"{self.repo}:{self.mode.value}"


@dataclass(frozen=True)
class TrackingMarker:
    """Per-subscription record of what has already been notified.

    last_identifier only moves forward after delivery succeeded. The
    cache_token and last_checked_at may be refreshed on their own.
    """

    last_identifier: str | None = None
    last_timestamp: datetime | None = None
    cache_token: str | None = None
    last_checked_at: datetime | None = None


@dataclass(frozen=True)
class RemoteItem:
    """A release or tag as reported by the upstream listing."""

    identifier: str  # tag name
    body: str = ""
    published_at: datetime | None = None
    url: str = ""
    name: str | None = None
    is_draft: bool = False
    is_prerelease: bool = False
    commit_sha: str | None = None  # tags only


@dataclass(frozen=True)
class CommitInfo:
    """A single commit returned by the compare or history endpoints."""

    sha: str
    message: str
    authored_at: datetime | None = None


class ListingStatus(Enum):
    """Outcome of a conditional listing fetch."""

    OK = "ok"
    NOT_MODIFIED = "not_modified"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"


@dataclass(frozen=True)
class ListingResponse:
    """Normalized response of one page of the upstream listing."""

    status: ListingStatus
    items: tuple[RemoteItem, ...] = ()
    cache_token: str | None = None
    rate_limit_reset: datetime | None = None
    status_code: int | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    """Items judged new for one poll, newest first, plus the cache token.

    skipped is True when the upstream fetch did not produce a listing
    (not modified, rate limited or failed).
    """

    new_items: tuple[RemoteItem, ...]
    cache_token: str | None
    skipped: bool = False


class CategoryType(Enum):
    """Kinds of change a release note line can describe."""

    FEAT = "feat"
    FIX = "fix"
    PERF = "perf"
    REFACTOR = "refactor"
    DOCS = "docs"
    OTHER = "other"

    @property
    def emoji(self) -> str:
        return _CATEGORY_EMOJI[self]

    def label(self, lang: str = "English") -> str:
        """Localized label, falling back to English for unknown languages."""
        labels = _CATEGORY_LABELS.get(lang, _CATEGORY_LABELS["English"])
        return labels[self]


_CATEGORY_EMOJI: dict[CategoryType, str] = {
    CategoryType.FEAT: "✨",
    CategoryType.FIX: "🐛",
    CategoryType.PERF: "⚡",
    CategoryType.REFACTOR: "♻️",
    CategoryType.DOCS: "📝",
    CategoryType.OTHER: "📌",
}

_CATEGORY_LABELS: dict[str, dict[CategoryType, str]] = {
    "English": {
        CategoryType.FEAT: "Features",
        CategoryType.FIX: "Bug Fixes",
        CategoryType.PERF: "Performance",
        CategoryType.REFACTOR: "Refactoring",
        CategoryType.DOCS: "Documentation",
        CategoryType.OTHER: "Other",
    },
    "Chinese": {
        CategoryType.FEAT: "新功能",
        CategoryType.FIX: "修复",
        CategoryType.PERF: "优化",
        CategoryType.REFACTOR: "重构",
        CategoryType.DOCS: "文档",
        CategoryType.OTHER: "其他",
    },
    "Japanese": {
        CategoryType.FEAT: "新機能",
        CategoryType.FIX: "修正",
        CategoryType.PERF: "最適化",
        CategoryType.REFACTOR: "リファクタリング",
        CategoryType.DOCS: "ドキュメント",
        CategoryType.OTHER: "その他",
    },
}


@dataclass(frozen=True)
class CategoryGroup:
    """One category and the one-line descriptions filed under it."""

    type: CategoryType
    items: tuple[str, ...]

    def __post_init__(self) -> None:
        """Normalize items to a tuple of non-blank strings."""
        cleaned = tuple(item.strip() for item in self.items if item and item.strip())
        object.__setattr__(self, "items", cleaned)


@dataclass(frozen=True)
class CategorizedItem:
    """A remote item after categorization, ready for rendering."""

    identifier: str
    published_at: datetime | None
    url: str
    categories: tuple[CategoryGroup, ...] = ()


@dataclass(frozen=True)
class SubscriptionOutcome:
    """What happened to one subscription during a run."""

    key: str
    new_items: int = 0
    delivered: bool = False
    marker_committed: bool = False
    skipped: bool = False  # listing not usable this cycle
    error: str | None = None


@dataclass(frozen=True)
class RunResult:
    """Summary of one run over all subscriptions."""

    started_at: datetime
    finished_at: datetime
    processed: int
    notified: int
    failed: int
    skipped: int = 0
    outcomes: tuple[SubscriptionOutcome, ...] = field(default_factory=tuple)
    cancelled: bool = False

    @property
    def exit_code(self) -> int:
        """Process exit status: non-zero when any subscription raised."""
        return 0 if self.failed == 0 else 1
