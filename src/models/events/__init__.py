"""
Event system for the host application

Events published on services.event_bus.EventBus by the Application and the orchestrator.
"""

from models.events.types import EventType
from models.events.base import Event
from models.events.sources import EventSource
from models.events.application import AppEvent, QuitEvent, ReadyEvent, MemoryPressureEvent

__all__ = [
    "EventType",
    "Event",
    "EventSource",
    "AppEvent",
    "QuitEvent",
    "ReadyEvent",
    "MemoryPressureEvent",
]
