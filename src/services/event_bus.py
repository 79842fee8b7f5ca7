"""
Event Bus - Application event routing

Implements pub-sub pattern on the control thread:
- Publishers: publish(event) -> event
- Subscribers: subscribe(event_type, handler, priority, filter_fn)
- Middleware: add_middleware(middleware_fn)
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from models.events import Event, EventType
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.EVENT)


@dataclass
class EventHandler:
    """Event handler registration"""
    handler: Callable[[Event], None]
    priority: int
    filter_fn: Optional[Callable[[Event], bool]]


class EventBus:
    """
    Central event bus for application events

    Features:
    - Priority-based handler execution (high priority first)
    - Per-handler filtering
    - Middleware pipeline (logging, blocking)
    - Synchronous dispatch; coroutine handlers are scheduled on the attached loop
    - Fault tolerance (one handler crash doesn't stop others)

    publish() runs every synchronous handler before returning, so callers can
    inspect the event afterwards (e.g. AppEvent.default_prevented).

    Example:
        bus = EventBus()
        bus.subscribe(EventType.BEFORE_QUIT, on_before_quit, priority=10)

        event = bus.publish(AppEvent(EventType.BEFORE_QUIT))
        if event.default_prevented:
            return
    """

    def __init__(self):
        # Handlers organized by event type
        self._handlers: Dict[EventType, List[EventHandler]] = {}

        # Middleware pipeline (applied in registration order)
        self._middleware: List[Callable[[Event], Optional[Event]]] = []

        # Event history (bounded, for debugging)
        self._event_history: List[Event] = []
        self._history_limit = 100

        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Loop used to schedule coroutine handlers."""
        self._loop = loop

    def subscribe(
        self,
        event_type: EventType,
        handler: Callable[[Event], None],
        priority: int = 0,
        filter_fn: Optional[Callable[[Event], bool]] = None
    ) -> None:
        """
        Subscribe to event type

        Args:
            event_type: Which events to listen for
            handler: Function to call (sync, or async when a loop is attached)
            priority: Execution priority (higher = called first, default: 0)
            filter_fn: Optional filter (return True = handle, False = skip)
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []

        self._handlers[event_type].append(EventHandler(handler, priority, filter_fn))

        # Sort by priority (descending - highest first); sort is stable
        self._handlers[event_type].sort(key=lambda h: h.priority, reverse=True)

        log.debug(
            "Event handler subscribed",
            event_type=event_type.name,
            handler=getattr(handler, "__name__", repr(handler)),
            priority=priority
        )

    def unsubscribe(self, event_type: EventType, handler: Callable[[Event], None]) -> bool:
        """Remove ``handler`` from ``event_type``. Returns False if it was not subscribed."""
        entries = self._handlers.get(event_type, [])
        for entry in entries:
            if entry.handler == handler:
                entries.remove(entry)
                return True
        return False

    def has_subscribers(self, event_type: EventType) -> bool:
        return bool(self._handlers.get(event_type))

    def add_middleware(self, middleware: Callable[[Event], Optional[Event]]) -> None:
        """
        Add middleware to event processing pipeline

        Middleware can modify events (return modified event), block events
        (return None), or log/validate them. Runs in registration order.
        """
        self._middleware.append(middleware)
        log.debug("Middleware registered", middleware=getattr(middleware, "__name__", repr(middleware)))

    def publish(self, event: Event) -> Optional[Event]:
        """
        Publish event to all subscribers

        Flow:
        1. Apply middleware (can modify or block event)
        2. Save to event history
        3. Execute handlers by priority (high → low), applying filters
        4. Catch and log handler exceptions

        Returns:
            The (possibly middleware-modified) event, or None if blocked
        """
        for middleware in self._middleware:
            processed_event = middleware(event)
            if processed_event is None:
                return None
            event = processed_event

        self._event_history.append(event)
        if len(self._event_history) > self._history_limit:
            self._event_history.pop(0)

        handlers = list(self._handlers.get(event.type, []))
        if not handlers:
            log.debug("No handlers for event", event_type=event.type.name)
            return event

        for handler_entry in handlers:
            if handler_entry.filter_fn and not handler_entry.filter_fn(event):
                continue

            name = getattr(handler_entry.handler, "__name__", repr(handler_entry.handler))
            try:
                if inspect.iscoroutinefunction(handler_entry.handler):
                    self._schedule(handler_entry.handler, event, name)
                else:
                    handler_entry.handler(event)
            except Exception as e:
                log.error(f"Event handler failed: {name} for {event.type.name}: {e}", exc_info=True)

        return event

    def _schedule(self, handler, event: Event, name: str) -> None:
        if self._loop is None or self._loop.is_closed():
            log.warn(f"No loop attached; dropping async handler {name} for {event.type.name}")
            return
        self._loop.create_task(handler(event), name=f"event:{event.type.name}:{name}")

    def get_event_history(self, limit: int = 10) -> List[Event]:
        """Recent events, newest last"""
        return self._event_history[-limit:]

    def clear_history(self) -> None:
        self._event_history.clear()
