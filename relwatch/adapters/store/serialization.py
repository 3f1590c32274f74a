"""Conversion between TrackingMarker and plain JSON-compatible dicts."""

from datetime import datetime, timezone
from typing import Any

from relwatch.core.models import TrackingMarker


def _format_dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO timestamp string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def marker_to_dict(marker: TrackingMarker) -> dict[str, Any]:
    """Serialize a marker to a JSON-compatible dict."""
    return {
        "last_identifier": marker.last_identifier,
        "last_timestamp": _format_dt(marker.last_timestamp),
        "cache_token": marker.cache_token,
        "last_checked_at": _format_dt(marker.last_checked_at),
    }


def _legacy_keys(key: str | None) -> dict[str, str]:
    """Field names used by the camelCase state layout, by marker field."""
    is_tag = key is not None and key.endswith(":tag")
    return {
        "last_identifier": "lastTag" if is_tag else "lastRelease",
        "last_timestamp": "lastTagDate" if is_tag else "lastReleaseDate",
        "cache_token": "etag",
        "last_checked_at": "lastCheck",
    }


def marker_from_dict(data: dict[str, Any], key: str | None = None) -> TrackingMarker:
    """Deserialize a marker.

    Entries written in the older camelCase layout (``lastRelease``,
    ``lastTag``, ``etag``, ``lastCheck`` and the ``*Date`` fields) are
    accepted too; ``key`` selects the tag or release fields.

    Raises:
        ValueError: If the entry is not a mapping or holds invalid values.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected an object, got {type(data).__name__}")
    legacy = _legacy_keys(key)

    def field(name: str) -> Any:
        if name in data:
            return data[name]
        return data.get(legacy[name])

    return TrackingMarker(
        last_identifier=field("last_identifier") or None,
        last_timestamp=_parse_dt(field("last_timestamp")),
        cache_token=field("cache_token") or None,
        last_checked_at=_parse_dt(field("last_checked_at")),
    )
