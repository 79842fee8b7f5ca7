"""
Application - launch / quit state machine of the host.

Observes the window registry: when the last window closes the application
publishes WINDOW_ALL_CLOSED and, unless someone subscribed to it, quits.

Quit sequence:
    quit() → BEFORE_QUIT → close all windows → (all closed) → WILL_QUIT
           → shutdown() → QUIT → host main loop stops

A window vetoing its close cancels a pending quit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from models.events import AppEvent, EventSource, EventType, QuitEvent, ReadyEvent
from windows.window_observer import WindowObserver
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from services.host_context import HostContext

log = get_logger().for_category(LogCategory.LIFECYCLE)


class Application(WindowObserver):
    """
    Application-level lifecycle state.

    Attributes:
        is_ready: did_finish_launching() has run
        is_quitting: a quit is in progress (reset when a window vetoes)
        is_exiting: exit() is tearing windows down without asking them
        is_shutting_down: the main loop has been asked to stop; final
    """

    def __init__(self, context: "HostContext"):
        self._context = context
        self.is_ready = False
        self.is_quitting = False
        self.is_exiting = False
        self.is_shutting_down = False
        self.launch_info: dict = {}

    # -----------------------------
    # Launch
    # -----------------------------
    def will_finish_launching(self) -> None:
        self._publish(AppEvent(EventType.WILL_FINISH_LAUNCHING))

    def did_finish_launching(self, launch_info: Optional[dict] = None) -> None:
        self.is_ready = True
        self.launch_info = dict(launch_info or {})
        log.info("Application ready")
        self._publish(ReadyEvent(self.launch_info))

    # -----------------------------
    # Quit / exit
    # -----------------------------
    def quit(self) -> None:
        """Close every window, then stop the main loop once all are gone."""
        if self.is_quitting or self.is_shutting_down:
            return

        event = self._publish(AppEvent(EventType.BEFORE_QUIT))
        if event is None or event.default_prevented:
            log.info("Quit prevented by before-quit handler")
            return

        self.is_quitting = True
        registry = self._context.window_registry
        if registry.is_empty:
            self._notify_and_shutdown()
        else:
            registry.close_all_windows()

    def exit(self, exit_code: int = 0) -> None:
        """
        Stop immediately with ``exit_code``, destroying windows without asking.

        Outside the main loop run there is no exit code slot to write to, so
        the process exits right away with SystemExit.
        """
        if not self._context.orchestrator.set_exit_code(exit_code):
            log.warn(f"Main loop not running; exiting immediately with code {exit_code}")
            raise SystemExit(exit_code)

        self.is_exiting = True
        for window in self._context.window_registry.windows:
            destroy = getattr(window, "destroy", None)
            if callable(destroy):
                destroy()
            else:
                window.close()
        self.shutdown()

    def shutdown(self) -> None:
        """Publish QUIT and stop the host main loop. Idempotent."""
        if self.is_shutting_down:
            return
        self.is_shutting_down = True
        self.is_quitting = True

        exit_code = self._context.orchestrator.get_exit_code()
        log.info(f"Application shutting down (exit code {exit_code})")
        self._publish(QuitEvent(exit_code))
        self._context.host_process.quit_main_loop()

    def _notify_and_shutdown(self) -> None:
        if self.is_shutting_down:
            return
        event = self._publish(AppEvent(EventType.WILL_QUIT))
        if event is None or event.default_prevented:
            log.info("Quit prevented by will-quit handler")
            self.is_quitting = False
            return
        self.shutdown()

    # -----------------------------
    # WindowObserver
    # -----------------------------
    def on_window_all_closed(self) -> None:
        if self.is_exiting or self.is_shutting_down:
            return
        if self.is_quitting:
            self._notify_and_shutdown()
            return

        bus = self._context.event_bus
        self._publish(AppEvent(EventType.WINDOW_ALL_CLOSED, source=EventSource.WINDOW_REGISTRY))
        if not bus.has_subscribers(EventType.WINDOW_ALL_CLOSED):
            self.quit()

    def on_window_close_cancelled(self, window: Any) -> None:
        if self.is_quitting and not self.is_shutting_down:
            log.info("Quit cancelled by a window refusing to close")
            self.is_quitting = False

    def _publish(self, event: AppEvent) -> Optional[AppEvent]:
        return self._context.event_bus.publish(event)
