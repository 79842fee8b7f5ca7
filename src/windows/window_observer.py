"""
Window observer protocol.

Observers subscribe to a WindowRegistry and receive window list changes.
Subclass WindowObserver and override only the callbacks you need; any
object providing a subset of these methods is accepted as well.
"""

from typing import Any, Protocol


class IWindow(Protocol):
    """
    Minimal contract the registry needs from a top-level window.

    Windows are owned by their creator; the registry only references them.
    """

    def close(self) -> None:
        """Request the window to close."""
        ...


class WindowObserver:
    """
    Base class for window registry observers (all callbacks are no-ops).

    Example:
        class QuitOnLastWindow(WindowObserver):
            def on_window_all_closed(self) -> None:
                app.quit()

        registry.add_observer(QuitOnLastWindow())
    """

    def on_window_added(self, window: Any) -> None:
        """Called after ``window`` was appended to the registry."""

    def on_window_removed(self, window: Any) -> None:
        """Called after a remove_window() call for ``window``."""

    def on_window_all_closed(self) -> None:
        """Called when a removal leaves the registry empty."""

    def on_window_close_cancelled(self, window: Any) -> None:
        """Called when ``window`` vetoed a close request."""
