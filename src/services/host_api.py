"""
Host API published to the scripting environment as ``host``.

Entry scripts use it to open windows, react to application events and
register teardown work:

    def on_ready(event):
        window = host.create_window("main")

    host.on("ready", on_ready)
    host.register_destruction_callback(lambda: print("bye"))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional

from models.events import Event, EventType
from windows.window import CloseHandler, HostWindow
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from lifecycle.destruction_registry import DestructionToken
    from services.host_context import HostContext

log = get_logger().for_category(LogCategory.RUNTIME)


class HostAPI:
    """Facade over the host context for script code."""

    def __init__(self, context: "HostContext"):
        self._context = context

    @property
    def app(self):
        return self._context.application

    @property
    def config(self):
        return self._context.config

    @property
    def features(self):
        return self._context.feature_list

    @property
    def windows(self) -> List[HostWindow]:
        return self._context.window_registry.windows

    def create_window(self, name: str = "window", on_close: Optional[CloseHandler] = None) -> HostWindow:
        window = HostWindow(self._context.window_registry, name=name, on_close=on_close)
        log.debug(f"Script opened window {name!r}")
        return window

    def on(self, event_name: str, handler: Callable[[Event], None], priority: int = 0) -> None:
        """Subscribe to an application event by name ("ready", "before-quit", ...)."""
        self._context.event_bus.subscribe(self._event_type(event_name), handler, priority=priority)

    def off(self, event_name: str, handler: Callable[[Event], None]) -> bool:
        return self._context.event_bus.unsubscribe(self._event_type(event_name), handler)

    def register_destruction_callback(self, callback: Callable[[], None]) -> "DestructionToken":
        return self._context.orchestrator.register_destruction_callback(callback)

    def set_exit_code(self, code: int) -> bool:
        return self._context.orchestrator.set_exit_code(code)

    def quit(self) -> None:
        self._context.application.quit()

    def exit(self, code: int = 0) -> None:
        self._context.application.exit(code)

    @staticmethod
    def _event_type(event_name: str) -> EventType:
        key = event_name.strip().upper().replace("-", "_")
        try:
            return EventType[key]
        except KeyError:
            raise ValueError(f"Unknown event: {event_name}") from None
