"""Reference top-level window bound to a WindowRegistry."""

from __future__ import annotations

from typing import Callable, Optional

from windows.window_registry import WindowRegistry
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.WINDOW)

# Returns False to veto the close request
CloseHandler = Callable[["HostWindow"], Optional[bool]]


class HostWindow:
    """
    Window that registers itself on creation and unregisters when closed.

    close() asks the ``on_close`` handler first; a handler returning False
    vetoes the close and the registry reports on_window_close_cancelled.
    destroy() skips the handler. A closed window ignores further requests.

    The creator owns the window. The registry lists it until close() or
    destroy() removes it.
    """

    def __init__(
        self,
        registry: WindowRegistry,
        name: str = "window",
        on_close: Optional[CloseHandler] = None,
    ):
        self.name = name
        self.on_close = on_close
        self.closed = False
        self._registry = registry
        registry.add_window(self)

    def close(self) -> bool:
        """
        Request the window to close.

        Returns:
            True if the window is closed afterwards
        """
        if self.closed:
            return True

        if self.on_close is not None and self.on_close(self) is False:
            log.debug(f"Close vetoed by {self.name}")
            self._registry.window_close_cancelled(self)
            return False

        self._finish_close()
        return True

    def destroy(self) -> None:
        """Close without consulting the close handler."""
        if not self.closed:
            self._finish_close()

    def _finish_close(self) -> None:
        self.closed = True
        self._registry.remove_window(self)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"HostWindow({self.name!r}, {state})"
