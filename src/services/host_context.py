"""Host Context - process-scoped container for the lifecycle collaborators"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from lifecycle.memory_pressure import MemoryPressureMonitor, PollingMemoryPressureMonitor
from lifecycle.signal_plumbing import SignalPlumbing
from managers.feature_list import FeatureList
from models.config import HostConfig
from services.application import Application
from services.event_bus import EventBus
from services.host_process import HostProcess
from utils.allocator import Allocator
from utils.fatal import fatal
from windows.window_registry import WindowRegistry

if TYPE_CHECKING:
    from lifecycle.orchestrator import LifecycleOrchestrator


@dataclass
class HostContext:
    """
    Everything the process needs exactly one of.

    Replaces process-global singletons: the window registry, the application
    and the orchestrator are reached through the context that owns them.
    Exactly one LifecycleOrchestrator may bind itself to a context.

    Usage:
        context = HostContext.create(config)
        orchestrator = LifecycleOrchestrator(context)
        context.orchestrator is orchestrator     # True
    """

    config: HostConfig
    event_bus: EventBus
    window_registry: WindowRegistry
    host_process: HostProcess
    signal_plumbing: SignalPlumbing
    memory_monitor: MemoryPressureMonitor
    allocator: Allocator
    feature_list: FeatureList
    application: Application = field(init=False)
    _orchestrator: Optional["LifecycleOrchestrator"] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.application = Application(self)
        # The context keeps the application alive; the registry holds it weakly
        self.window_registry.add_observer(self.application)

    @classmethod
    def create(
        cls,
        config: Optional[HostConfig] = None,
        *,
        host_process: Optional[HostProcess] = None,
        memory_monitor: Optional[MemoryPressureMonitor] = None,
        allocator: Optional[Allocator] = None,
        notify_on_missing_remove: bool = True,
    ) -> "HostContext":
        """Build a context with default collaborators, overriding the given ones."""
        config = config or HostConfig()
        if memory_monitor is None:
            if config.memory_pressure.enabled:
                memory_monitor = PollingMemoryPressureMonitor(config.memory_pressure)
            else:
                memory_monitor = MemoryPressureMonitor()

        return cls(
            config=config,
            event_bus=EventBus(),
            window_registry=WindowRegistry(notify_on_missing_remove=notify_on_missing_remove),
            host_process=host_process or HostProcess(),
            signal_plumbing=SignalPlumbing(),
            memory_monitor=memory_monitor,
            allocator=allocator or Allocator(),
            feature_list=FeatureList(),
        )

    @property
    def orchestrator(self) -> "LifecycleOrchestrator":
        if self._orchestrator is None:
            fatal("No LifecycleOrchestrator bound to this host context")
        return self._orchestrator

    @property
    def has_orchestrator(self) -> bool:
        return self._orchestrator is not None

    def bind_orchestrator(self, orchestrator: "LifecycleOrchestrator") -> None:
        if self._orchestrator is not None:
            fatal("Cannot have two LifecycleOrchestrators", existing=repr(self._orchestrator))
        self._orchestrator = orchestrator
