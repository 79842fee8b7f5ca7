"""
Window Registry
---------------

Tracks the open top-level windows of the host process and notifies
subscribed observers of add / remove / close-cancel / all-closed events.

One instance lives in the HostContext for the whole process lifetime and is
never explicitly destroyed. Not synchronized: every method must be called on
the control thread.
"""

from __future__ import annotations

import weakref
from typing import Any, Iterator, List

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.WINDOW)


def _describe(obj: Any) -> str:
    return getattr(obj, "name", None) or f"{type(obj).__name__}@{id(obj):#x}"


class ObserverList:
    """
    Ordered, non-owning list of observers with snapshot-on-dispatch.

    - Observers are held through weak references; collected observers drop out.
    - notify() iterates a copy taken before the first call, so an observer
      added during dispatch does not receive the event being dispatched.
    - Before each call the entry is checked against the live list, so an
      observer removed during dispatch receives nothing further.
    - A raising observer is logged and the dispatch continues.
    """

    def __init__(self) -> None:
        self._refs: List[weakref.ref] = []

    def add(self, observer: Any) -> bool:
        """Returns False if ``observer`` was already subscribed."""
        self._prune()
        if self._index_of(observer) is not None:
            return False
        self._refs.append(weakref.ref(observer))
        return True

    def remove(self, observer: Any) -> bool:
        """Returns False if ``observer`` was not subscribed."""
        index = self._index_of(observer)
        if index is None:
            return False
        del self._refs[index]
        return True

    def notify(self, method_name: str, *args: Any) -> None:
        for ref in list(self._refs):
            if not any(live is ref for live in self._refs):
                continue
            observer = ref()
            if observer is None:
                continue
            callback = getattr(observer, method_name, None)
            if callback is None:
                continue
            try:
                callback(*args)
            except Exception as e:
                log.error(
                    f"Window observer failed: {type(observer).__name__}.{method_name}: {e}",
                    exc_info=True,
                )
        self._prune()

    def __contains__(self, observer: Any) -> bool:
        return self._index_of(observer) is not None

    def __len__(self) -> int:
        return sum(1 for ref in self._refs if ref() is not None)

    def _index_of(self, observer: Any):
        for i, ref in enumerate(self._refs):
            if ref() is observer:
                return i
        return None

    def _prune(self) -> None:
        self._refs = [ref for ref in self._refs if ref() is not None]


class WindowRegistry:
    """
    Ordered sequence of open windows plus an observer list.

    Windows are compared by identity. The registry never closes or destroys a
    window on its own: the creator calls remove_window() when the window goes
    away, and every entry stays listed until then. Adding the same window
    twice is not prevented; remove_window() removes every occurrence.

    Args:
        notify_on_missing_remove: When True (default) remove_window() notifies
            observers even if the window was never registered, and reports
            all-closed if the registry is empty afterwards. When False such a
            call is a silent no-op.

    Example:
        registry = WindowRegistry()
        registry.add_observer(app)

        registry.add_window(main_window)     # app.on_window_added(main_window)
        registry.remove_window(main_window)  # on_window_removed, then on_window_all_closed
    """

    def __init__(self, notify_on_missing_remove: bool = True) -> None:
        self.notify_on_missing_remove = notify_on_missing_remove
        self._windows: List[Any] = []
        self._observers = ObserverList()

    # -----------------------------
    # Windows
    # -----------------------------

    def add_window(self, window: Any) -> None:
        """Append ``window`` and notify on_window_added."""
        if window is None:
            raise ValueError("window must not be None")

        self._windows.append(window)
        log.debug("Window added", window=_describe(window), count=len(self))
        self._observers.notify("on_window_added", window)

    def remove_window(self, window: Any) -> None:
        """
        Remove every occurrence of ``window`` (stable order) and notify.

        on_window_removed fires even when ``window`` was not registered
        (see notify_on_missing_remove). on_window_all_closed follows when the
        registry is empty afterwards.
        """
        kept = [w for w in self._windows if w is not window]
        was_present = len(kept) != len(self._windows)
        self._windows = kept

        if not was_present and not self.notify_on_missing_remove:
            log.debug("Ignoring removal of unregistered window", window=_describe(window))
            return

        log.debug("Window removed", window=_describe(window), count=len(self))
        self._observers.notify("on_window_removed", window)

        if not self._windows:
            log.debug("All windows closed")
            self._observers.notify("on_window_all_closed")

    def window_close_cancelled(self, window: Any) -> None:
        """Notify on_window_close_cancelled; the sequence is unchanged."""
        log.debug("Window close cancelled", window=_describe(window))
        self._observers.notify("on_window_close_cancelled", window)

    def close_all_windows(self) -> int:
        """
        Call close() once on every window registered at call time.

        Iterates a snapshot, so close handlers that add or remove windows do
        not disturb the pass.

        Returns:
            Number of close() calls made
        """
        snapshot = self.windows
        log.info(f"Closing {len(snapshot)} window(s)")
        for window in snapshot:
            window.close()
        return len(snapshot)

    @property
    def windows(self) -> List[Any]:
        """Snapshot of the live windows in registration order."""
        return list(self._windows)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        return len(self._windows)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.windows)

    def __contains__(self, window: Any) -> bool:
        return any(w is window for w in self._windows)

    # -----------------------------
    # Observers
    # -----------------------------

    def add_observer(self, observer: Any) -> None:
        """Subscribe ``observer`` (held weakly). Safe during dispatch."""
        if not self._observers.add(observer):
            log.debug(f"Observer already subscribed: {type(observer).__name__}")

    def remove_observer(self, observer: Any) -> None:
        """Unsubscribe ``observer``. Safe during dispatch."""
        self._observers.remove(observer)

    def has_observer(self, observer: Any) -> bool:
        return observer in self._observers
