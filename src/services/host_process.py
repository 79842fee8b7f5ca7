"""
Host process facade.

Base-phase hooks the orchestrator delegates to, plus the blocking main loop.
The default implementation runs the runtime's asyncio loop as the main
message loop; embedders subclass it to plug in a GUI toolkit.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from lifecycle.orchestrator import ExitCodeSlot
    from services.location_services import LocationServicesDelegate

log = get_logger().for_category(LogCategory.LIFECYCLE)

RESULT_CODE_NORMAL_EXIT = 0


class HostProcess:
    """
    Default host process facade.

    Example:
        host = HostProcess()
        host.attach_loop(loop)
        host.main_message_loop_run(slot)   # returns after quit_main_loop()
    """

    def __init__(self) -> None:
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.location_delegate: Optional["LocationServicesDelegate"] = None
        self.main_loop_running = False
        self.quit_requested = False
        self.tear_down_started = False

    # -----------------------------
    # Base phases
    # -----------------------------
    def pre_early_initialization(self) -> None:
        log.debug("Host: pre early initialization")

    def pre_create_threads(self) -> int:
        log.debug("Host: pre create threads")
        return RESULT_CODE_NORMAL_EXIT

    def post_early_initialization(self) -> None:
        log.debug("Host: post early initialization")

    def pre_main_message_loop_run(self) -> None:
        log.debug("Host: pre main message loop run")

    def post_main_message_loop_start(self) -> None:
        log.debug("Host: post main message loop start")

    def post_main_message_loop_run(self) -> None:
        log.debug("Host: post main message loop run")

    def start_tear_down(self) -> None:
        self.tear_down_started = True
        log.info("Host teardown started")

    # -----------------------------
    # Collaborator wiring
    # -----------------------------
    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def set_location_delegate(self, delegate: "LocationServicesDelegate") -> None:
        self.location_delegate = delegate

    # -----------------------------
    # Main loop
    # -----------------------------
    def main_message_loop_run(self, result_code: "ExitCodeSlot") -> bool:
        """
        Run the main loop until quit_main_loop() is called.

        Returns:
            True when the loop was run here, False when no loop is attached
        """
        if self.loop is None:
            log.warn("No loop attached; main message loop not run")
            return False

        self.main_loop_running = True
        try:
            if not self.quit_requested:
                self.loop.run_forever()
        finally:
            self.main_loop_running = False
        log.info(f"Main message loop finished (exit code {result_code.value})")
        return True

    def quit_main_loop(self) -> None:
        """Ask the main loop to stop after the current iteration."""
        self.quit_requested = True
        if self.loop is not None and not self.loop.is_closed():
            self.loop.stop()
