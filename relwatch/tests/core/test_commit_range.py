"""Tests for building tag notes from commit ranges."""

from datetime import UTC, datetime

import pytest

from relwatch.core.commit_range import CommitRangeResolver, format_commit_log
from relwatch.core.models import CommitInfo, RemoteItem
from relwatch.tests.fakes import FakeSourcePort

REPO = "acme/widget"
TAG_TIME = datetime(2024, 6, 1, 8, 30, tzinfo=UTC)


def tag(identifier: str) -> RemoteItem:
    return RemoteItem(identifier=identifier, commit_sha=f"sha-{identifier}")


def commit(sha: str, message: str) -> CommitInfo:
    return CommitInfo(sha=sha, message=message)


@pytest.fixture
def source() -> FakeSourcePort:
    source = FakeSourcePort()
    source.commit_dates["sha-v3"] = TAG_TIME
    source.commit_dates["sha-v4"] = TAG_TIME
    return source


class TestFormatCommitLog:
    """Tests for rendering commits as bullet lines."""

    def test_uses_subject_line_only(self) -> None:
        commits = [
            commit("a", "feat: add export\n\nLonger description here."),
            commit("b", "fix: handle empty input"),
        ]
        assert format_commit_log(commits) == "- feat: add export\n- fix: handle empty input"

    def test_skips_blank_messages(self) -> None:
        assert format_commit_log([commit("a", "  \n"), commit("b", "docs: readme")]) == (
            "- docs: readme"
        )

    def test_empty(self) -> None:
        assert format_commit_log([]) == ""


@pytest.mark.asyncio
async def test_chained_bases_oldest_first(source: FakeSourcePort) -> None:
    """Each tag is compared against the tag before it, not the stored one."""
    source.comparisons[(REPO, "v2", "v3")] = [commit("c3", "feat: three")]
    source.comparisons[(REPO, "v3", "v4")] = [commit("c4", "fix: four")]
    resolver = CommitRangeResolver(source)

    resolved = await resolver.resolve(REPO, [tag("v4"), tag("v3")], previous_tag="v2")

    assert [item.identifier for item in resolved] == ["v3", "v4"]
    assert source.compare_calls == [(REPO, "v2", "v3"), (REPO, "v3", "v4")]
    assert resolved[0].body == "- feat: three"
    assert resolved[1].body == "- fix: four"


@pytest.mark.asyncio
async def test_first_run_uses_tag_history(source: FakeSourcePort) -> None:
    source.histories[(REPO, "v3")] = [
        commit(f"c{i}", f"change {i}") for i in range(80)
    ]
    resolver = CommitRangeResolver(source, max_commits=50)

    resolved = await resolver.resolve(REPO, [tag("v3")], previous_tag=None)

    assert source.list_commits_calls == [(REPO, "v3", 50)]
    assert source.compare_calls == []
    assert resolved[0].body.count("\n") == 49


@pytest.mark.asyncio
async def test_compare_keeps_most_recent_commits(source: FakeSourcePort) -> None:
    source.comparisons[(REPO, "v2", "v3")] = [
        commit(f"c{i}", f"change {i}") for i in range(10)
    ]
    resolver = CommitRangeResolver(source, max_commits=3)

    resolved = await resolver.resolve(REPO, [tag("v3")], previous_tag="v2")

    assert resolved[0].body == "- change 7\n- change 8\n- change 9"


@pytest.mark.asyncio
async def test_timestamp_from_commit_date(source: FakeSourcePort) -> None:
    resolver = CommitRangeResolver(source)

    resolved = await resolver.resolve(REPO, [tag("v3")], previous_tag="v2")

    assert resolved[0].published_at == TAG_TIME
    assert source.commit_date_calls == [(REPO, "sha-v3")]


@pytest.mark.asyncio
async def test_missing_commit_date_uses_now(source: FakeSourcePort) -> None:
    resolver = CommitRangeResolver(source)
    before = datetime.now(UTC)

    resolved = await resolver.resolve(REPO, [tag("v9")], previous_tag="v2")

    assert resolved[0].published_at is not None
    assert resolved[0].published_at >= before


@pytest.mark.asyncio
async def test_existing_timestamp_is_kept(source: FakeSourcePort) -> None:
    """Dates already resolved by the detector are not looked up again."""
    resolver = CommitRangeResolver(source)
    dated = RemoteItem(identifier="v3", commit_sha="sha-v3", published_at=TAG_TIME)

    await resolver.resolve(REPO, [dated], previous_tag="v2")

    assert source.commit_date_calls == []


@pytest.mark.asyncio
async def test_empty_range_gives_empty_body(source: FakeSourcePort) -> None:
    resolver = CommitRangeResolver(source)

    resolved = await resolver.resolve(REPO, [tag("v3")], previous_tag="v2")

    assert resolved[0].body == ""


def test_max_commits_must_be_positive() -> None:
    with pytest.raises(ValueError):
        CommitRangeResolver(FakeSourcePort(), max_commits=0)
