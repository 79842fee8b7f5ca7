"""
Fatal programmer-error handling.

Invariant violations (a second orchestrator, a phase run twice, access to a
component that was never bound) are not runtime conditions: log once and
abort the process. There is no recovery path.
"""

import os
import sys
from typing import NoReturn

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


def fatal(message: str, **details) -> NoReturn:
    """Log ``message`` at ERROR and abort the process."""
    log.error(f"FATAL: {message}", **details)
    sys.stdout.flush()
    sys.stderr.flush()
    os.abort()
