"""Daemon scheduler adapter.

Implements a long-running asyncio loop that triggers a run over all
subscriptions at a configurable interval. Shutdown is cooperative: a
signal sets the cancel event, the subscription in progress finishes, and
the loop exits.
"""

import asyncio
import logging
import signal
from typing import cast

from relwatch.core.models import RunResult
from relwatch.core.ports import RunPort

logger = logging.getLogger(__name__)


def install_signal_handlers(cancel: asyncio.Event) -> None:
    """Set `cancel` on SIGTERM or SIGINT."""
    try:
        loop = asyncio.get_running_loop()

        def _handle_signal(sig: int) -> None:
            logger.info(f"Received signal {sig}, finishing current subscription then stopping...")
            cancel.set()

        loop.add_signal_handler(signal.SIGTERM, _handle_signal, signal.SIGTERM)
        loop.add_signal_handler(signal.SIGINT, _handle_signal, signal.SIGINT)
    except NotImplementedError:
        # Signal handlers not available on Windows
        logger.debug("Signal handlers not available on this platform")
    except Exception as e:
        logger.warning(f"Failed to set up signal handlers: {e}")


class DaemonScheduler:
    """Asyncio-based daemon scheduler for periodic runs."""

    def __init__(
        self,
        run_port: RunPort | None = None,
        poll_interval_seconds: int = 900,
        cancel: asyncio.Event | None = None,
    ):
        """Initialize daemon scheduler.

        Args:
            run_port: RunPort implementation to call on every tick (can be set later).
            poll_interval_seconds: Interval between the end of one run and
                the start of the next.
            cancel: Event shared with the run loop; created if omitted.
        """
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        self.run_port = run_port
        self.poll_interval_seconds = poll_interval_seconds
        self.cancel = cancel or asyncio.Event()
        self.running = False
        self.last_result: RunResult | None = None
        self._failure_count = 0  # consecutive runs that raised

    async def start(self, handle_signals: bool = True) -> None:
        """Run until stopped.

        Raises:
            ValueError: If run_port is not set.
        """
        if self.run_port is None:
            raise ValueError("run_port must be set before starting the scheduler")

        if self.running:
            logger.warning("Daemon scheduler already running")
            return

        self.running = True
        logger.info(
            f"Starting daemon scheduler with {self.poll_interval_seconds}s interval"
        )

        if handle_signals:
            install_signal_handlers(self.cancel)

        try:
            await self._run_loop()
        except asyncio.CancelledError:
            logger.info("Daemon scheduler cancelled")
        finally:
            self.running = False
            logger.info("Daemon scheduler stopped")

    def stop(self) -> None:
        """Ask the loop to stop after the current subscription."""
        if self.running:
            logger.info("Stopping daemon scheduler...")
        self.cancel.set()

    async def _run_loop(self) -> None:
        """Main daemon loop."""
        # Type guard: run_port is guaranteed to be non-None (checked in start())
        run_port = cast(RunPort, self.run_port)

        cycle_number = 0

        while not self.cancel.is_set():
            cycle_number += 1
            logger.debug(f"Starting run #{cycle_number}")

            try:
                self.last_result = await run_port.run_once(self.cancel)
                self._failure_count = 0
                logger.info(
                    f"Run #{cycle_number} completed: "
                    f"{self.last_result.processed} processed, "
                    f"{self.last_result.notified} notified, "
                    f"{self.last_result.failed} failed"
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._failure_count += 1
                logger.error(
                    f"Error in run #{cycle_number}: {e} "
                    f"(consecutive failures: {self._failure_count})",
                    exc_info=True,
                )
                if self._failure_count >= 5:
                    logger.critical(
                        f"Run has failed {self._failure_count} consecutive times. "
                        f"This may indicate a persistent issue such as an "
                        f"unwritable state file."
                    )

            await self._wait_for_next_tick()

    async def _wait_for_next_tick(self) -> None:
        """Sleep for one interval, waking early if cancellation is requested."""
        try:
            await asyncio.wait_for(self.cancel.wait(), timeout=self.poll_interval_seconds)
        except asyncio.TimeoutError:
            pass


async def run_single(run_port: RunPort, handle_signals: bool = True) -> RunResult:
    """Run once (non-daemon mode) and return the result.

    Args:
        run_port: RunPort implementation to call.
        handle_signals: Install SIGINT/SIGTERM handlers for a graceful stop.
    """
    cancel = asyncio.Event()
    if handle_signals:
        install_signal_handlers(cancel)
    logger.info("Running single check")
    return await run_port.run_once(cancel)
