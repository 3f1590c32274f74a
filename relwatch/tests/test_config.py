"""Tests for settings and subscription loading."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from relwatch.config import Settings, load_subscriptions, parse_subscriptions
from relwatch.core.models import SubscriptionMode


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)  # type: ignore[call-arg]


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        settings = make_settings()

        assert settings.github_page_size == 30
        assert settings.max_tag_commits == 50
        assert settings.message_max_length == 4096
        assert settings.state_backend == "json"
        assert settings.run_mode == "once"
        assert settings.timezone == "UTC"
        assert settings.target_lang == "English"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "@releases")
        monkeypatch.setenv("AI_PROVIDER", "openai-responses")
        monkeypatch.setenv("TIMEZONE", "Asia/Shanghai")
        monkeypatch.setenv("POLL_INTERVAL_SECONDS", "60")

        settings = make_settings()

        assert settings.telegram_bot_token == "123:abc"
        assert settings.telegram_chat_id == "@releases"
        assert settings.ai_provider == "openai-responses"
        assert settings.timezone == "Asia/Shanghai"
        assert settings.poll_interval_seconds == 60

    @pytest.mark.parametrize(
        "overrides",
        [
            {"timezone": "Mars/Olympus_Mons"},
            {"poll_interval_seconds": 0},
            {"github_page_size": 101},
            {"max_tag_commits": -1},
            {"http_timeout_seconds": 0},
            {"ai_provider": "google"},
        ],
    )
    def test_rejects_invalid_values(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            make_settings(**overrides)

    def test_empty_base_url_is_none(self) -> None:
        assert make_settings(ai_base_url="").ai_base_url is None

    def test_check_required_for_telegram_and_model(self) -> None:
        settings = make_settings(
            delivery_backend="telegram",
            telegram_bot_token="",
            telegram_chat_id="",
            ai_provider="anthropic",
            ai_api_key="",
            ai_model="",
        )
        with pytest.raises(ValueError) as excinfo:
            settings.check_required()
        message = str(excinfo.value)
        for name in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "AI_API_KEY", "AI_MODEL"):
            assert name in message

    def test_check_required_passes_for_local_backends(self) -> None:
        make_settings(delivery_backend="stdout", ai_provider="none").check_required()


class TestSubscriptions:
    """Tests for the subscriptions file."""

    def test_strings_and_objects(self) -> None:
        subs = parse_subscriptions(
            {
                "repos": [
                    "acme/widget",
                    {"repo": "acme/gadget", "mode": "tag"},
                    {"repo": "acme/gizmo"},
                ]
            }
        )

        assert [(s.repo, s.mode) for s in subs] == [
            ("acme/widget", SubscriptionMode.RELEASE),
            ("acme/gadget", SubscriptionMode.TAG),
            ("acme/gizmo", SubscriptionMode.RELEASE),
        ]

    def test_same_repo_in_both_modes_is_kept(self) -> None:
        subs = parse_subscriptions(
            {"repos": ["acme/widget", {"repo": "acme/widget", "mode": "tag"}, "acme/widget"]}
        )
        assert [s.key for s in subs] == ["acme/widget", "acme/widget:tag"]

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"repos": "acme/widget"},
            {"repos": ["not-a-repo"]},
            {"repos": [{"repo": "acme/widget", "mode": "branch"}]},
            [],
        ],
    )
    def test_invalid_content(self, data: object) -> None:
        with pytest.raises(ValueError):
            parse_subscriptions(data)

    def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "subscribe.json"
        path.write_text(json.dumps({"repos": ["acme/widget"]}), encoding="utf-8")

        assert [s.repo for s in load_subscriptions(str(path))] == ["acme/widget"]

    def test_load_rejects_bad_json(self, tmp_path: Path) -> None:
        path = tmp_path / "subscribe.json"
        path.write_text("{repos: [}", encoding="utf-8")

        with pytest.raises(ValueError, match="not valid JSON"):
            load_subscriptions(str(path))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_subscriptions(str(tmp_path / "absent.json"))
