# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Sweep scheduling.

SweepScheduler owns the periodic timer that triggers sweeps. Timers are
created through a timer factory so the scheduler works with a plain
thread timer (the default) or with a host's asyncio event loop:

    scheduler = SweepScheduler(runner)                                   # threads
    scheduler = SweepScheduler(runner, timer_factory=loop_timer(loop))   # asyncio

States: STOPPED -> RUNNING (start) -> STOPPED (stop). Changing the interval
while RUNNING cancels the pending timer and arms a new one.
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from buffer_sweeper.config import SweeperConfig
from buffer_sweeper.janitor.runner import SweepRunner
from buffer_sweeper.schemas import SweepReport

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """A pending one-shot timer."""

    def cancel(self) -> Any:
        ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def threading_timer(interval: float, callback: Callable[[], None]) -> TimerHandle:
    """Arm a daemon thread timer."""
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    timer.start()
    return timer


def loop_timer(loop: asyncio.AbstractEventLoop) -> TimerFactory:
    """Build a timer factory that schedules on an asyncio event loop.

    The callback runs on the loop's thread, between other loop callbacks,
    so a sweep never overlaps other host work on that loop.
    """

    def factory(interval: float, callback: Callable[[], None]) -> TimerHandle:
        return loop.call_later(interval, callback)

    return factory


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class SweepScheduler:
    """Periodic trigger for SweepRunner.run().

    Attributes:
        runner: Runner whose run() is called on every tick.
        interval_seconds: Current period between sweeps.
        last_report: Report of the most recent timer-driven sweep.

    Example:
        >>> scheduler = SweepScheduler(runner)
        >>> scheduler.start()
        >>> scheduler.reschedule(120)   # sweep every two minutes
        >>> scheduler.stop()
    """

    def __init__(
        self,
        runner: SweepRunner,
        interval_seconds: Optional[float] = None,
        timer_factory: TimerFactory = threading_timer,
    ):
        """Initialize the scheduler.

        Args:
            runner: Runner to trigger.
            interval_seconds: Period (defaults to the runner's config).
            timer_factory: Creates one-shot timers.
        """
        self.runner = runner
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else runner.config.sweep_interval_seconds
        )
        self._timer_factory = timer_factory
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._state = SchedulerState.STOPPED
        self._lock = threading.RLock()
        self._sweeping = threading.Lock()
        self.last_report: Optional[SweepReport] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    def start(self) -> None:
        """Start periodic sweeps. No-op if already running."""
        with self._lock:
            if self.is_running:
                return
            self._state = SchedulerState.RUNNING
            self._arm()
        logger.info(f"Sweeps scheduled every {self.interval_seconds} seconds")

    def stop(self) -> None:
        """Cancel the pending timer. A sweep already in progress completes."""
        with self._lock:
            if not self.is_running:
                return
            self._state = SchedulerState.STOPPED
            self._cancel()
        logger.info("Sweep scheduling stopped")

    def set_enabled(self, enabled: bool) -> None:
        """Lifecycle toggle: start or stop periodic sweeps."""
        if enabled:
            self.start()
        else:
            self.stop()

    def reschedule(self, interval_seconds: float) -> None:
        """Change the sweep period.

        If running, the pending timer is cancelled and exactly one new timer
        is armed with the new period.

        Raises:
            ValueError: If interval_seconds is not positive.
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds!r}")
        with self._lock:
            self.interval_seconds = interval_seconds
            if self.is_running:
                self._cancel()
                self._arm()
        logger.info(f"Sweep interval set to {interval_seconds} seconds")

    def on_config_changed(self, config: SweeperConfig) -> None:
        """Apply a new configuration, rescheduling only if the interval changed."""
        self.runner.config = config
        if config.sweep_interval_seconds != self.interval_seconds:
            self.reschedule(config.sweep_interval_seconds)

    def tick(self, generation: Optional[int] = None) -> Optional[SweepReport]:
        """Handle one timer firing: sweep, then re-arm.

        Timers armed by this scheduler pass the generation they were armed
        in. A firing from a timer that stop() or reschedule() has since
        cancelled is stale and does nothing. Calling tick() with no
        generation sweeps immediately and leaves any pending timer alone.

        A tick that arrives while a sweep is still running is skipped.
        Failures are logged and the schedule stays armed.

        Returns:
            The sweep report, or None if the sweep was skipped or failed.
        """
        with self._lock:
            if generation is not None:
                if generation != self._generation:
                    logger.debug("Ignoring tick from a cancelled timer")
                    return None
                self._timer = None

        report = None
        if not self._sweeping.acquire(blocking=False):
            logger.debug("Previous sweep still in progress, skipping tick")
        else:
            try:
                report = self.runner.run()
                self.last_report = report
            except Exception as e:
                logger.error(f"Scheduled sweep failed: {e}")
            finally:
                self._sweeping.release()

        with self._lock:
            if self.is_running and self._timer is None:
                self._arm()
        return report

    def _arm(self) -> None:
        generation = self._generation
        self._timer = self._timer_factory(
            self.interval_seconds, lambda: self.tick(generation)
        )

    def _cancel(self) -> None:
        # Outdates any firing already past cancel(), e.g. a thread timer
        # whose callback is waiting on the lock.
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
