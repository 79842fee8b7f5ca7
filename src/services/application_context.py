"""Default application context (per-partition storage root)."""

from pathlib import Path

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class ApplicationContext:
    """
    Storage root of a session partition.

    The default context (partition "", persistent) lives in the user data
    directory itself; named partitions live under ``Partitions/<name>``.
    In-memory contexts have no path.
    """

    def __init__(self, user_data_dir: Path, partition: str = "", in_memory: bool = False):
        self.partition = partition
        self.in_memory = in_memory
        self.closed = False
        if in_memory:
            self.path = None
        elif partition:
            self.path = Path(user_data_dir) / "Partitions" / partition
        else:
            self.path = Path(user_data_dir)

    @classmethod
    def create_default(cls, user_data_dir: Path) -> "ApplicationContext":
        return cls(user_data_dir, partition="", in_memory=False)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        log.debug(f"Application context released (partition={self.partition!r})")
