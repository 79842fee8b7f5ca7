"""
Idle maintenance timer.

Repeating loop timer used by the orchestrator to release free allocator
memory once per interval while the control thread is idle.
"""

import asyncio
from typing import Callable, Optional

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.MEMORY)

IDLE_MAINTENANCE_INTERVAL = 60.0  # seconds


class RepeatingTimer:
    """
    Calls ``callback`` every ``interval`` seconds on ``loop``.

    The next firing is scheduled after the callback returns, so a slow
    callback never overlaps itself. A raising callback is logged and the
    timer keeps running.

    Example:
        timer = RepeatingTimer(loop, 60.0, allocator.release_free_memory)
        timer.start()
        ...
        timer.stop()
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], object]):
        if interval <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval}")
        self._loop = loop
        self.interval = interval
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self.fire_count = 0

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        self._schedule()
        log.debug(f"Idle maintenance timer armed (every {self.interval:g}s)")

    def stop(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        log.debug("Idle maintenance timer stopped")

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        self.fire_count += 1
        try:
            self._callback()
        except Exception as e:
            log.error(f"Idle maintenance callback failed: {e}", exc_info=True)
        if self._handle is not None:
            self._schedule()
