"""Tests for the JSON file state store."""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from relwatch.adapters.store.json_file import JsonFileStateStore
from relwatch.core.models import TrackingMarker

MARKER = TrackingMarker(
    last_identifier="v1.2.0",
    last_timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
    cache_token='W/"etag"',
    last_checked_at=datetime(2024, 5, 2, 8, 30, tzinfo=UTC),
)


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "state.json"


@pytest.mark.asyncio
async def test_missing_file_is_empty_state(state_path: Path) -> None:
    store = JsonFileStateStore(str(state_path))
    assert await store.load() == {}


@pytest.mark.asyncio
async def test_save_then_load(state_path: Path) -> None:
    store = JsonFileStateStore(str(state_path))
    await store.save({"acme/widget": MARKER, "acme/widget:tag": TrackingMarker()})

    loaded = await JsonFileStateStore(str(state_path)).load()

    assert loaded["acme/widget"] == MARKER
    assert loaded["acme/widget:tag"] == TrackingMarker()


@pytest.mark.asyncio
async def test_file_format(state_path: Path) -> None:
    store = JsonFileStateStore(str(state_path))
    await store.save({"acme/widget": MARKER})

    data = json.loads(state_path.read_text(encoding="utf-8"))

    assert data == {
        "acme/widget": {
            "last_identifier": "v1.2.0",
            "last_timestamp": "2024-05-01T12:00:00+00:00",
            "cache_token": 'W/"etag"',
            "last_checked_at": "2024-05-02T08:30:00+00:00",
        }
    }


@pytest.mark.asyncio
async def test_save_leaves_no_temp_files(state_path: Path) -> None:
    store = JsonFileStateStore(str(state_path))
    await store.save({"acme/widget": MARKER})
    await store.save({"acme/widget": MARKER})

    assert [p.name for p in state_path.parent.iterdir()] == ["state.json"]


@pytest.mark.asyncio
async def test_naive_timestamps_load_as_utc(state_path: Path) -> None:
    state_path.parent.mkdir(parents=True)
    state_path.write_text(
        json.dumps({"acme/widget": {"last_identifier": "v1", "last_timestamp": "2024-05-01T12:00:00"}}),
        encoding="utf-8",
    )

    loaded = await JsonFileStateStore(str(state_path)).load()

    assert loaded["acme/widget"].last_timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_malformed_entries_are_skipped(state_path: Path) -> None:
    state_path.parent.mkdir(parents=True)
    state_path.write_text(
        json.dumps(
            {
                "good/repo": {"last_identifier": "v1"},
                "bad/repo": "not an object",
                "worse/repo": {"last_timestamp": "yesterday"},
            }
        ),
        encoding="utf-8",
    )

    loaded = await JsonFileStateStore(str(state_path)).load()

    assert list(loaded) == ["good/repo"]


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
async def test_corrupt_file_raises(state_path: Path, content: str) -> None:
    state_path.parent.mkdir(parents=True)
    state_path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        await JsonFileStateStore(str(state_path)).load()


@pytest.mark.asyncio
async def test_camel_case_state_file_loads(state_path: Path) -> None:
    """State written in the older camelCase layout keeps its markers."""
    state_path.parent.mkdir(parents=True)
    state_path.write_text(
        json.dumps(
            {
                "acme/widget": {
                    "lastRelease": "v1.2.0",
                    "lastReleaseDate": "2024-05-01T12:00:00Z",
                    "etag": 'W/"etag"',
                    "lastCheck": "2024-05-02T08:30:00.000Z",
                },
                "acme/widget:tag": {
                    "lastRelease": "",
                    "lastTag": "v0.3.0",
                    "lastTagDate": "2024-04-01T00:00:00Z",
                    "etag": None,
                    "lastCheck": "2024-05-02T08:30:00.000Z",
                },
            }
        ),
        encoding="utf-8",
    )

    loaded = await JsonFileStateStore(str(state_path)).load()

    assert loaded["acme/widget"] == MARKER
    tag_marker = loaded["acme/widget:tag"]
    assert tag_marker.last_identifier == "v0.3.0"
    assert tag_marker.last_timestamp == datetime(2024, 4, 1, tzinfo=UTC)
    assert tag_marker.cache_token is None
    assert tag_marker.last_checked_at == datetime(2024, 5, 2, 8, 30, tzinfo=UTC)
