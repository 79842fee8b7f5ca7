"""
Allocator collaborator: return free heap memory to the operating system.

Called by the idle-maintenance timer and by the memory pressure handler.
"""

import ctypes
import ctypes.util
import gc
from typing import Callable, Optional

from runtime.runtime_info import RuntimeInfo
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.MEMORY)


def _load_malloc_trim() -> Optional[Callable[[int], int]]:
    """Resolve glibc malloc_trim(), or None on other platforms/libcs."""
    if not RuntimeInfo.is_linux():
        return None
    libc_name = ctypes.util.find_library("c")
    if not libc_name:
        return None
    try:
        libc = ctypes.CDLL(libc_name)
        trim = libc.malloc_trim
    except (OSError, AttributeError):
        return None
    trim.argtypes = [ctypes.c_size_t]
    trim.restype = ctypes.c_int
    return trim


class Allocator:
    """
    Release free memory held by the interpreter and the C allocator.

    Example:
        allocator = Allocator()
        allocator.release_free_memory()
    """

    def __init__(self, malloc_trim: Optional[Callable[[int], int]] = None, use_malloc_trim: bool = True):
        """
        Args:
            malloc_trim: Override for the native trim function (tests)
            use_malloc_trim: Resolve glibc malloc_trim when no override is given
        """
        if malloc_trim is None and use_malloc_trim:
            malloc_trim = _load_malloc_trim()
        self._malloc_trim = malloc_trim
        self.release_count = 0

    def release_free_memory(self) -> int:
        """
        Collect garbage and trim the native heap.

        Returns:
            Number of unreachable objects found by the collector
        """
        collected = gc.collect()
        trimmed = False
        if self._malloc_trim is not None:
            trimmed = bool(self._malloc_trim(0))
        self.release_count += 1
        log.debug("Released free memory", collected=collected, trimmed=trimmed)
        return collected
