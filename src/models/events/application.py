"""Application lifecycle events (launch, window list, quit sequence)"""

from dataclasses import dataclass
from typing import Optional

from models.enums import MemoryPressureLevel
from models.events.base import Event
from models.events.types import EventType
from models.events.sources import EventSource


@dataclass(init=False)
class AppEvent(Event[EventSource]):
    """
    Generic application event without payload.

    Handlers may call prevent_default() to veto BEFORE_QUIT and WILL_QUIT.
    Subscribing to WINDOW_ALL_CLOSED at all keeps the application running
    after its last window closes.
    """
    default_prevented: bool

    def __init__(self, type: EventType, source: EventSource = EventSource.APPLICATION):
        super().__init__(type=type, source=source)
        self.default_prevented = False

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass(init=False)
class QuitEvent(AppEvent):
    """Emitted once the run loop has been asked to stop"""
    exit_code: int

    def __init__(self, exit_code: int):
        super().__init__(EventType.QUIT)
        self.exit_code = exit_code


@dataclass(init=False)
class ReadyEvent(AppEvent):
    """Emitted by did_finish_launching()"""
    launch_info: Optional[dict]

    def __init__(self, launch_info: Optional[dict] = None):
        super().__init__(EventType.READY)
        self.launch_info = launch_info or {}


@dataclass(init=False)
class MemoryPressureEvent(AppEvent):
    """Emitted after the orchestrator handled a memory pressure signal"""
    level: MemoryPressureLevel

    def __init__(self, level: MemoryPressureLevel):
        super().__init__(EventType.MEMORY_PRESSURE, source=EventSource.ORCHESTRATOR)
        self.level = level
