"""Configuration loading for the relwatch release notifier.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Load the list of watched repositories from a JSON file
"""

import json
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from relwatch.core.models import Subscription, SubscriptionMode


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Source (GitHub) configuration
    github_token: str = Field(
        default="",
        description="GitHub token; unauthenticated access is limited to 60 req/hr",
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    github_page_size: int = Field(
        default=30,
        description="Releases or tags fetched per poll",
    )
    max_tag_commits: int = Field(
        default=50,
        description="Most recent commits kept per tag in tag mode",
    )

    # Delivery configuration
    delivery_backend: Literal["telegram", "stdout"] = Field(
        default="telegram",
        description="Delivery backend type",
    )
    telegram_bot_token: str = Field(
        default="",
        description="Telegram bot token",
    )
    telegram_chat_id: str = Field(
        default="",
        description="Telegram chat ID or @channel",
    )
    telegram_api_url: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL",
    )
    message_max_length: int = Field(
        default=4096,
        description="Maximum characters per delivered message",
    )

    # Categorizer configuration
    ai_provider: Literal["openai-completions", "openai-responses", "anthropic", "none"] = Field(
        default="openai-completions",
        description="Model backend; 'none' uses keyword heuristics only",
    )
    ai_base_url: str | None = Field(
        default=None,
        description="Optional OpenAI/Anthropic compatible endpoint",
    )
    ai_api_key: str = Field(
        default="",
        description="API key for the model backend",
    )
    ai_model: str = Field(
        default="",
        description="Model name for the model backend",
    )
    target_lang: str = Field(
        default="English",
        description="Language notifications are written in",
    )
    timezone: str = Field(
        default="UTC",
        description="IANA time zone used for dates in notifications",
    )

    # Subscriptions and state
    subscriptions_path: str = Field(
        default="./subscribe.json",
        description="JSON file listing watched repositories",
    )
    state_backend: Literal["json", "sqlite"] = Field(
        default="json",
        description="State store backend type",
    )
    state_path: str = Field(
        default="./data/state.json",
        description="JSON state file path",
    )
    state_sqlite_path: str = Field(
        default="./data/state.db",
        description="SQLite state database path",
    )

    # Run mode
    run_mode: Literal["once", "daemon"] = Field(
        default="once",
        description="Run once and exit, or keep polling",
    )
    poll_interval_seconds: int = Field(
        default=900,
        description="Polling interval in seconds (daemon mode)",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for GitHub and Telegram requests",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator(
        "github_page_size",
        "max_tag_commits",
        "message_max_length",
        "poll_interval_seconds",
    )
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        """Ensure counts and intervals are positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    @field_validator("github_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """GitHub caps per_page at 100."""
        if v > 100:
            raise ValueError("github_page_size must be at most 100")
        return v

    @field_validator("http_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure the HTTP timeout is positive."""
        if v <= 0:
            raise ValueError("http_timeout_seconds must be positive")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure the time zone is a known IANA name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("ai_base_url")
    @classmethod
    def validate_base_url(cls, v: str | None) -> str | None:
        """Treat an empty base URL as unset."""
        return v or None

    def check_required(self) -> None:
        """Check settings that are only required for some backends.

        Raises:
            ValueError: If a selected backend is missing its credentials.
        """
        missing = []
        if self.delivery_backend == "telegram":
            if not self.telegram_bot_token:
                missing.append("TELEGRAM_BOT_TOKEN")
            if not self.telegram_chat_id:
                missing.append("TELEGRAM_CHAT_ID")
        if self.ai_provider != "none":
            if not self.ai_api_key:
                missing.append("AI_API_KEY")
            if not self.ai_model:
                missing.append("AI_MODEL")
        if missing:
            raise ValueError(f"Missing required env: {', '.join(missing)}")


class SubscriptionEntry(BaseModel):
    """One entry of the subscriptions file in object form."""

    repo: str
    mode: SubscriptionMode = SubscriptionMode.RELEASE


class SubscriptionsFile(BaseModel):
    """Top-level shape of the subscriptions file."""

    repos: list[str | SubscriptionEntry]


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


def parse_subscriptions(data: object) -> list[Subscription]:
    """Build subscriptions from decoded subscriptions-file content.

    Entries are either "owner/name" strings (release mode) or objects
    with "repo" and an optional "mode" of "release" or "tag". Duplicate
    entries are dropped, keeping the first.

    Raises:
        ValueError: If the content or any entry is invalid.
    """
    try:
        parsed = SubscriptionsFile.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid subscriptions file: {e}") from e

    subscriptions: list[Subscription] = []
    seen: set[str] = set()
    for entry in parsed.repos:
        if isinstance(entry, str):
            subscription = Subscription(repo=entry.strip())
        else:
            subscription = Subscription(repo=entry.repo.strip(), mode=entry.mode)
        if subscription.key in seen:
            continue
        seen.add(subscription.key)
        subscriptions.append(subscription)
    return subscriptions


def load_subscriptions(path: str) -> list[Subscription]:
    """Read and parse the subscriptions file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or has invalid entries.
    """
    raw = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Subscriptions file {path} is not valid JSON: {e}") from e
    return parse_subscriptions(data)


__all__ = [
    "Settings",
    "load_settings",
    "load_subscriptions",
    "parse_subscriptions",
]
