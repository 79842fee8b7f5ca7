"""
Memory pressure signal
----------------------

MemoryPressureMonitor fans platform memory-pressure notifications out to
listeners on the control thread. notify() may be called from any thread;
delivery always happens as a loop callback once a loop is attached.

PollingMemoryPressureMonitor samples system memory with psutil and raises
the signal itself.
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

import psutil

from models.enums import MemoryPressureLevel
from models.config import MemoryPressureConfig
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.MEMORY)

MemoryPressureCallback = Callable[[MemoryPressureLevel], None]


class MemoryPressureSubscription:
    """Handle returned by MemoryPressureMonitor.subscribe()."""

    def __init__(self, monitor: "MemoryPressureMonitor", callback: MemoryPressureCallback):
        self._monitor = monitor
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._monitor._unsubscribe(self)


class MemoryPressureMonitor:
    """
    Memory pressure listener registry.

    Example:
        monitor = MemoryPressureMonitor()
        monitor.attach_loop(loop)
        sub = monitor.subscribe(lambda level: allocator.release_free_memory())
        monitor.notify(MemoryPressureLevel.CRITICAL)   # delivered via loop.call_soon_threadsafe
        sub.cancel()
    """

    def __init__(self) -> None:
        self._subscriptions: List[MemoryPressureSubscription] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def subscribe(self, callback: MemoryPressureCallback) -> MemoryPressureSubscription:
        subscription = MemoryPressureSubscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    def notify(self, level: MemoryPressureLevel) -> None:
        """Raise the signal. Safe to call from any thread once a loop is attached."""
        if level is MemoryPressureLevel.NONE:
            return
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._dispatch, level)
        else:
            self._dispatch(level)

    def start(self) -> None:
        """Begin producing signals (no-op: platform plumbing calls notify())."""

    def stop(self) -> None:
        """Stop producing signals."""

    def _dispatch(self, level: MemoryPressureLevel) -> None:
        log.debug(f"Memory pressure: {level.name}", listeners=len(self._subscriptions))
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription.callback(level)
            except Exception as e:
                log.error(f"Memory pressure listener failed: {e}", exc_info=True)

    def _unsubscribe(self, subscription: MemoryPressureSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)


class PollingMemoryPressureMonitor(MemoryPressureMonitor):
    """
    Raises memory pressure from psutil.virtual_memory() samples.

    A signal is emitted when the sampled level rises above NONE or changes
    while above NONE. Requires an attached loop; polling runs as a loop task.
    """

    def __init__(self, config: Optional[MemoryPressureConfig] = None, sampler: Optional[Callable[[], float]] = None):
        """
        Args:
            config: Thresholds and poll interval
            sampler: Returns used memory percent (default: psutil)
        """
        super().__init__()
        self.config = config or MemoryPressureConfig()
        self._sampler = sampler or (lambda: psutil.virtual_memory().percent)
        self._task: Optional[asyncio.Task] = None
        self._last_level = MemoryPressureLevel.NONE

    def classify(self, used_percent: float) -> MemoryPressureLevel:
        if used_percent >= self.config.critical_percent:
            return MemoryPressureLevel.CRITICAL
        if used_percent >= self.config.moderate_percent:
            return MemoryPressureLevel.MODERATE
        return MemoryPressureLevel.NONE

    def poll_once(self) -> MemoryPressureLevel:
        """Sample memory and emit a signal on an upward or lateral change."""
        level = self.classify(self._sampler())
        if level is not MemoryPressureLevel.NONE and level is not self._last_level:
            self._dispatch(level)
        self._last_level = level
        return level

    def start(self) -> None:
        if self._task is not None:
            return
        if self._loop is None:
            raise RuntimeError("attach_loop() before start()")
        self._task = self._loop.create_task(self._poll(), name="MemoryPressurePoll")
        log.debug(f"Memory pressure polling every {self.config.poll_interval_seconds:g}s")

    def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None

    async def _poll(self) -> None:
        while True:
            try:
                self.poll_once()
            except Exception as e:
                log.error(f"Memory sampling failed: {e}", exc_info=True)
            await asyncio.sleep(self.config.poll_interval_seconds)
