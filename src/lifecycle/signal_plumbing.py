"""
Platform signal plumbing.

Installs the process-level signal handlers the orchestrator needs at fixed
phase boundaries:

- child-process handling (SIGCHLD) during pre_early_initialization()
- shutdown handling (SIGINT, SIGTERM, SIGHUP) during
  post_main_message_loop_start(), once the runtime loop exists
"""

import asyncio
import signal
from typing import Callable, Dict, List, Optional

from runtime.runtime_info import RuntimeInfo
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)

SHUTDOWN_SIGNAL_NAMES = ("SIGINT", "SIGTERM", "SIGHUP")


def _sigchld_handler(signum, frame) -> None:
    """No-op: SIGCHLD must be caught (not ignored) for children to stay waitable."""


class SignalPlumbing:
    """
    Owns the handlers installed for the host process.

    The first shutdown signal calls ``on_shutdown`` on the loop and removes
    the loop handlers, so a second identical signal falls back to the default
    action and terminates a process that is stuck quitting.

    Example:
        plumbing = SignalPlumbing()
        plumbing.install_child_handler()
        plumbing.install_shutdown_handlers(loop, app.quit)
        ...
        plumbing.uninstall()
    """

    def __init__(self) -> None:
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._shutdown_signals: List[signal.Signals] = []
        self._previous_handlers: Dict[signal.Signals, object] = {}
        self.child_handler_installed = False
        self.last_signal: Optional[str] = None

    def install_child_handler(self) -> bool:
        """Catch SIGCHLD with a no-op handler (POSIX only)."""
        if not (RuntimeInfo.is_posix() and RuntimeInfo.has_signal("SIGCHLD")):
            return False
        try:
            previous = signal.signal(signal.SIGCHLD, _sigchld_handler)
        except ValueError as e:
            # signal.signal() only works on the main thread
            log.warn(f"Cannot install SIGCHLD handler: {e}")
            return False
        self._previous_handlers[signal.SIGCHLD] = previous
        self.child_handler_installed = True
        log.debug("SIGCHLD handler installed")
        return True

    def install_shutdown_handlers(
        self,
        loop: asyncio.AbstractEventLoop,
        on_shutdown: Callable[[], None],
    ) -> List[str]:
        """
        Route SIGINT/SIGTERM/SIGHUP to ``on_shutdown`` on ``loop``.

        Returns:
            Names of the signals actually installed
        """
        self._loop = loop
        installed = []

        def signal_handler(sig: signal.Signals) -> None:
            self.last_signal = sig.name
            log.info(f"Signal {sig.name} received → quitting")
            self._remove_loop_handler(sig)
            on_shutdown()

        for name in SHUTDOWN_SIGNAL_NAMES:
            if not RuntimeInfo.has_signal(name):
                continue
            sig = getattr(signal, name)
            try:
                loop.add_signal_handler(sig, signal_handler, sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                log.debug(f"Cannot install {name} handler: {e}")
                continue
            self._shutdown_signals.append(sig)
            installed.append(name)

        if installed:
            log.info(f"Signal handlers installed ({', '.join(installed)})")
        return installed

    def uninstall(self) -> None:
        """Remove the loop handlers and restore the previous SIGCHLD handler."""
        for sig in list(self._shutdown_signals):
            self._remove_loop_handler(sig)

        previous = self._previous_handlers.pop(signal.SIGCHLD, None) if RuntimeInfo.has_signal("SIGCHLD") else None
        if previous is not None:
            try:
                signal.signal(signal.SIGCHLD, previous)
            except ValueError as e:
                log.warn(f"Cannot restore SIGCHLD handler: {e}")
            self.child_handler_installed = False

    @property
    def shutdown_signals(self) -> List[str]:
        return [sig.name for sig in self._shutdown_signals]

    def _remove_loop_handler(self, sig: signal.Signals) -> None:
        if sig in self._shutdown_signals:
            self._shutdown_signals.remove(sig)
        if self._loop is not None and not self._loop.is_closed():
            self._loop.remove_signal_handler(sig)
