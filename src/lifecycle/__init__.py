"""
Lifecycle subsystem
-------------------

Exports the public API for:
- phase orchestration & exit code
- ordered teardown (destruction callbacks)
- idle maintenance, memory pressure, signal plumbing

The host driver imports the services layer and is not re-exported here:
    from lifecycle.host_main import run_host
"""

from .destruction_registry import DestructionRegistry, DestructionToken
from .idle_maintenance import RepeatingTimer, IDLE_MAINTENANCE_INTERVAL
from .memory_pressure import MemoryPressureMonitor, MemoryPressureSubscription, PollingMemoryPressureMonitor
from .signal_plumbing import SignalPlumbing
from .orchestrator import ExitCodeSlot, LifecycleOrchestrator

__all__ = [
    "DestructionRegistry",
    "DestructionToken",
    "RepeatingTimer",
    "IDLE_MAINTENANCE_INTERVAL",
    "MemoryPressureMonitor",
    "MemoryPressureSubscription",
    "PollingMemoryPressureMonitor",
    "SignalPlumbing",
    "ExitCodeSlot",
    "LifecycleOrchestrator",
]
