"""
Models package - Data models for the host lifecycle core
"""

from .enums import LifecyclePhase, MemoryPressureLevel, LogLevel, LogCategory
from .config import HostConfig, MemoryPressureConfig

__all__ = [
    'LifecyclePhase',
    'MemoryPressureLevel',
    'LogLevel',
    'LogCategory',
    'HostConfig',
    'MemoryPressureConfig',
]
