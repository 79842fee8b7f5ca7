"""
Windows subsystem
-----------------

Registry of open top-level windows with observer notification.

    from windows import WindowRegistry, WindowObserver, HostWindow
"""

from .window_observer import IWindow, WindowObserver
from .window_registry import ObserverList, WindowRegistry
from .window import HostWindow

__all__ = [
    "IWindow",
    "WindowObserver",
    "ObserverList",
    "WindowRegistry",
    "HostWindow",
]
