import os
import signal
import sys


class RuntimeInfo:
    """Platform probes used by the signal plumbing and the allocator."""

    @classmethod
    def is_linux(cls) -> bool:
        return sys.platform.startswith("linux")

    @classmethod
    def is_posix(cls) -> bool:
        return os.name == "posix"

    @classmethod
    def has_signal(cls, name: str) -> bool:
        """True when the signal module defines ``name`` (e.g. "SIGCHLD")."""
        return isinstance(getattr(signal, name, None), signal.Signals)
