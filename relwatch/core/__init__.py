"""Core domain logic for the relwatch release notifier.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    CategorizedItem,
    CategoryGroup,
    CategoryType,
    CommitInfo,
    ListingResponse,
    ListingStatus,
    ReconciliationResult,
    RemoteItem,
    RunResult,
    Subscription,
    SubscriptionMode,
    SubscriptionOutcome,
    TrackingMarker,
)

__all__ = [
    "CategorizedItem",
    "CategoryGroup",
    "CategoryType",
    "CommitInfo",
    "ListingResponse",
    "ListingStatus",
    "ReconciliationResult",
    "RemoteItem",
    "RunResult",
    "Subscription",
    "SubscriptionMode",
    "SubscriptionOutcome",
    "TrackingMarker",
]
