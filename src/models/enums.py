"""
Enums for the host lifecycle core
"""

from enum import Enum, auto


class LifecyclePhase(Enum):
    """
    Host lifecycle phases, listed in declaration order.

    The host driver runs POST_MAIN_MESSAGE_LOOP_START before
    MAIN_MESSAGE_LOOP_RUN because shutdown signal handling needs the loop
    built by PRE_MAIN_MESSAGE_LOOP_RUN.
    """
    PRE_EARLY_INITIALIZATION = auto()
    PRE_CREATE_THREADS = auto()
    POST_EARLY_INITIALIZATION = auto()
    PRE_MAIN_MESSAGE_LOOP_RUN = auto()
    MAIN_MESSAGE_LOOP_RUN = auto()
    POST_MAIN_MESSAGE_LOOP_START = auto()
    POST_MAIN_MESSAGE_LOOP_RUN = auto()


class MemoryPressureLevel(Enum):
    """Memory pressure severity reported by the platform monitor"""
    NONE = auto()
    MODERATE = auto()
    CRITICAL = auto()


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Configuration loading, validation
    SYSTEM = auto()      # Startup, fatal errors
    LIFECYCLE = auto()   # Phase transitions
    SHUTDOWN = auto()    # Destruction callbacks, teardown
    RUNTIME = auto()     # Scripting runtime and event loop
    WINDOW = auto()      # Window registry, observers
    MEMORY = auto()      # Idle maintenance, memory pressure
    EVENT = auto()       # Event bus events and handling
