"""
Tests for HostWindow close / veto / destroy behaviour.
"""

from windows.window import HostWindow
from windows.window_observer import WindowObserver
from windows.window_registry import WindowRegistry


class Recorder(WindowObserver):
    def __init__(self):
        self.events = []

    def on_window_added(self, window):
        self.events.append(("added", window.name))

    def on_window_removed(self, window):
        self.events.append(("removed", window.name))

    def on_window_all_closed(self):
        self.events.append(("all_closed",))

    def on_window_close_cancelled(self, window):
        self.events.append(("close_cancelled", window.name))


def test_window_registers_itself_and_unregisters_on_close():
    registry = WindowRegistry()
    recorder = Recorder()
    registry.add_observer(recorder)

    window = HostWindow(registry, "main")
    assert window in registry

    assert window.close() is True
    assert window.closed
    assert recorder.events == [("added", "main"), ("removed", "main"), ("all_closed",)]


def test_close_handler_returning_false_vetoes():
    registry = WindowRegistry()
    recorder = Recorder()
    registry.add_observer(recorder)
    window = HostWindow(registry, "editor", on_close=lambda w: False)

    assert window.close() is False

    assert not window.closed
    assert window in registry
    assert recorder.events[-1] == ("close_cancelled", "editor")


def test_close_handler_returning_none_allows_close():
    registry = WindowRegistry()
    seen = []
    window = HostWindow(registry, "w", on_close=seen.append)

    assert window.close() is True
    assert seen == [window]


def test_destroy_skips_close_handler():
    registry = WindowRegistry()
    window = HostWindow(registry, "stubborn", on_close=lambda w: False)

    window.destroy()

    assert window.closed
    assert registry.is_empty


def test_closed_window_ignores_further_requests():
    registry = WindowRegistry()
    recorder = Recorder()
    window = HostWindow(registry, "w")
    registry.add_observer(recorder)

    window.close()
    window.close()
    window.destroy()

    assert recorder.events.count(("removed", "w")) == 1
