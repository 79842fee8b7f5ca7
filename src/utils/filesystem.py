"""Filesystem collaborator (best-effort directory creation)."""

from pathlib import Path

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


def ensure_directory(path: Path) -> bool:
    """
    Create ``path`` (and parents) if missing.

    Failures are logged at DEBUG and otherwise ignored.

    Returns:
        True if the directory exists afterwards
    """
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
        return True
    except OSError as e:
        log.debug(f"Could not create directory {path}: {e}")
        return False
