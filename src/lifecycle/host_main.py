"""
Host driver

Creates the process-scoped HostContext and its LifecycleOrchestrator, then
runs the lifecycle phases in host order and returns the process exit code.
"""

from typing import Optional

from lifecycle.orchestrator import ExitCodeSlot, LifecycleOrchestrator, RuntimeFactory
from models.config import HostConfig
from services.host_context import HostContext
from services.host_process import HostProcess, RESULT_CODE_NORMAL_EXIT
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


def run_host(
    config: Optional[HostConfig] = None,
    *,
    host_process: Optional[HostProcess] = None,
    runtime_factory: Optional[RuntimeFactory] = None,
    context: Optional[HostContext] = None,
) -> int:
    """
    Run the host from startup to teardown.

    Shutdown signal handling (post_main_message_loop_start) is installed
    before the blocking main loop run, on the loop pre_main_message_loop_run
    created.

    Returns:
        Exit code: the pre_create_threads status if it failed, otherwise the
        value written through set_exit_code() (default 0)
    """
    if context is None:
        context = HostContext.create(config, host_process=host_process)
    orchestrator = LifecycleOrchestrator(context, runtime_factory=runtime_factory)

    log.info(f"Starting {context.config.app_name}")

    orchestrator.pre_early_initialization()
    result = orchestrator.pre_create_threads()
    if result != RESULT_CODE_NORMAL_EXIT:
        log.error(f"pre_create_threads failed with code {result}")
        return result
    orchestrator.post_early_initialization()
    orchestrator.pre_main_message_loop_run()
    orchestrator.post_main_message_loop_start()

    slot = ExitCodeSlot(RESULT_CODE_NORMAL_EXIT)
    orchestrator.main_message_loop_run(slot)
    orchestrator.post_main_message_loop_run()

    exit_code = orchestrator.get_exit_code()
    log.info(f"{context.config.app_name} exited", exit_code=exit_code)
    return exit_code
