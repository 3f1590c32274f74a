"""Composition root for the relwatch release notifier.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation
- Core service initialization
- Dependency injection
- Entry point selection (single run or daemon)
"""

import asyncio
import logging
import sys
from collections.abc import Sequence
from typing import Any

from relwatch.adapters.notification.stdout import StdoutDeliveryAdapter
from relwatch.adapters.notification.telegram import TelegramDeliveryAdapter
from relwatch.adapters.scheduler.daemon import DaemonScheduler, run_single
from relwatch.adapters.source.github import GitHubSourceAdapter
from relwatch.adapters.store.json_file import JsonFileStateStore
from relwatch.adapters.store.sqlite import SQLiteStateStore
from relwatch.config import Settings, load_settings, load_subscriptions
from relwatch.core.assembler import NotificationAssembler
from relwatch.core.categorizer import Categorizer
from relwatch.core.commit_range import CommitRangeResolver
from relwatch.core.detector import ChangeDetector
from relwatch.core.models import Subscription
from relwatch.core.ports import CategorizerPort, DeliveryPort, StateStorePort
from relwatch.core.run_service import RunService


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    # Map string level to logging constant
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )
    # httpx logs every request at INFO, which leaks the bot token in URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_store(settings: Settings) -> StateStorePort:
    """Select the state store backend."""
    if settings.state_backend == "sqlite":
        return SQLiteStateStore(db_path=settings.state_sqlite_path)
    return JsonFileStateStore(path=settings.state_path)


def build_categorizer_engine(settings: Settings) -> CategorizerPort | None:
    """Select the model backend, or None for keyword heuristics only."""
    if settings.ai_provider == "none":
        return None

    if settings.ai_provider == "anthropic":
        # Lazy import for optional Anthropic dependency
        from relwatch.adapters.categorizer.anthropic import AnthropicCategorizerAdapter

        return AnthropicCategorizerAdapter(
            api_key=settings.ai_api_key,
            model=settings.ai_model,
            target_lang=settings.target_lang,
            base_url=settings.ai_base_url,
        )

    from relwatch.adapters.categorizer.openai import OpenAICategorizerAdapter

    return OpenAICategorizerAdapter(
        api_key=settings.ai_api_key,
        model=settings.ai_model,
        target_lang=settings.target_lang,
        base_url=settings.ai_base_url,
        mode="responses" if settings.ai_provider == "openai-responses" else "completions",
    )


def build_delivery(settings: Settings) -> DeliveryPort:
    """Select the delivery backend."""
    if settings.delivery_backend == "stdout":
        return StdoutDeliveryAdapter()
    return TelegramDeliveryAdapter(
        bot_token=settings.telegram_bot_token,
        chat_id=settings.telegram_chat_id,
        api_url=settings.telegram_api_url,
        timeout=settings.http_timeout_seconds,
    )


def build_run_service(
    settings: Settings,
    subscriptions: Sequence[Subscription],
    source: GitHubSourceAdapter,
    delivery: DeliveryPort,
) -> RunService:
    """Wire the core services around the given adapters."""
    return RunService(
        subscriptions=subscriptions,
        store=build_store(settings),
        detector=ChangeDetector(source, page_size=settings.github_page_size),
        resolver=CommitRangeResolver(source, max_commits=settings.max_tag_commits),
        categorizer=Categorizer(build_categorizer_engine(settings)),
        assembler=NotificationAssembler(
            max_length=settings.message_max_length,
            lang=settings.target_lang,
            tz=settings.timezone,
        ),
        delivery=delivery,
    )


async def _close(resource: Any) -> None:
    """Close an adapter if it holds resources."""
    close = getattr(resource, "close", None)
    if close is not None:
        await close()


async def bootstrap(settings: Settings | None = None) -> int:
    """Load configuration, wire adapters, and run.

    This is the composition root: the single place where all components
    are instantiated and wired together.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Load subscriptions
    4. Instantiate adapters and core services
    5. Run once or start the daemon loop

    Returns:
        Process exit code: 0 if every subscription succeeded, 1 otherwise.
    """
    # Step 1: Load configuration
    if settings is None:
        settings = load_settings()

    # Step 2: Configure logging
    configure_logging(settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading relwatch release notifier...")

    try:
        settings.check_required()
    except ValueError as e:
        logger.error(str(e))
        return 1

    # Step 3: Load subscriptions
    try:
        subscriptions = load_subscriptions(settings.subscriptions_path)
    except FileNotFoundError:
        logger.error(f"Subscriptions file not found: {settings.subscriptions_path}")
        return 1
    except ValueError as e:
        logger.error(f"Failed to load subscriptions: {e}")
        return 1

    if not subscriptions:
        logger.info("No repositories to watch")
        return 0
    logger.info(f"Watching {len(subscriptions)} repositories")

    if not settings.github_token:
        logger.info(
            "Tip: set GITHUB_TOKEN to raise the GitHub API rate limit from 60 to 5000 req/hr"
        )

    # Step 4: Instantiate adapters
    logger.info("Initializing adapters...")
    source = GitHubSourceAdapter(
        token=settings.github_token,
        api_url=settings.github_api_url,
        timeout=settings.http_timeout_seconds,
    )
    delivery: DeliveryPort | None = None
    try:
        delivery = build_delivery(settings)
        run_service = build_run_service(settings, subscriptions, source, delivery)
    except ValueError as e:
        logger.error(f"Failed to initialize adapters: {e}")
        await source.close()
        await _close(delivery)
        return 1
    logger.info(
        f"Adapters: state={settings.state_backend}, "
        f"categorizer={settings.ai_provider}, delivery={settings.delivery_backend}"
    )

    # Step 5: Select run mode and start
    logger.info(f"Starting in {settings.run_mode} mode...")
    try:
        if settings.run_mode == "daemon":
            scheduler = DaemonScheduler(
                run_port=run_service,
                poll_interval_seconds=settings.poll_interval_seconds,
            )
            await scheduler.start()
            return 0

        result = await run_single(run_service)
        return result.exit_code
    finally:
        # Clean up resources
        await source.close()
        await _close(delivery)


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Every subscription processed without error
        1: A subscription failed, or a fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        code = asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
