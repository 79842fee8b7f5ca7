"""
Utility functions for the host lifecycle core
"""

from .allocator import Allocator
from .fatal import fatal
from .filesystem import ensure_directory

__all__ = [
    'Allocator',
    'fatal',
    'ensure_directory',
]
