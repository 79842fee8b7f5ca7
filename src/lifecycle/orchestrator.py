"""
Lifecycle orchestrator.

Sequences the host's startup and shutdown phases around the host process's
base phases, owns the scripting runtime environment and the destruction
registry, and exposes the exit code of the main loop run.

Phase order driven by lifecycle.host_main.run_host():

    pre_early_initialization      → SIGCHLD handling
    pre_create_threads            → location services delegate
    post_early_initialization
    pre_main_message_loop_run     → runtime, entry script, timers, app launch
    post_main_message_loop_start  → shutdown signal handling
    main_message_loop_run         → blocks until the application quits
    post_main_message_loop_run    → destruction callbacks, teardown

Each phase runs once. A repeated phase, or one whose prerequisite has not
run, is a programmer error and aborts the process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Optional, Set

from lifecycle.destruction_registry import DestructionRegistry, DestructionToken
from lifecycle.idle_maintenance import RepeatingTimer
from lifecycle.memory_pressure import MemoryPressureSubscription
from models.config import HostConfig
from models.enums import LifecyclePhase, MemoryPressureLevel
from models.events import MemoryPressureEvent
from runtime.runtime_environment import RuntimeEnvironment
from runtime.script_runtime import PythonScriptRuntime, ScriptRuntime
from services.application_context import ApplicationContext
from services.host_api import HostAPI
from services.location_services import LocationServicesDelegate
from utils.fatal import fatal
from utils.filesystem import ensure_directory
from utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from services.host_context import HostContext

log = get_logger().for_category(LogCategory.LIFECYCLE)

RuntimeFactory = Callable[[HostConfig], ScriptRuntime]

# Phase → phase that must have completed before it
_PREREQUISITES: Dict[LifecyclePhase, LifecyclePhase] = {
    LifecyclePhase.PRE_CREATE_THREADS: LifecyclePhase.PRE_EARLY_INITIALIZATION,
    LifecyclePhase.POST_EARLY_INITIALIZATION: LifecyclePhase.PRE_CREATE_THREADS,
    LifecyclePhase.PRE_MAIN_MESSAGE_LOOP_RUN: LifecyclePhase.POST_EARLY_INITIALIZATION,
    LifecyclePhase.POST_MAIN_MESSAGE_LOOP_START: LifecyclePhase.PRE_MAIN_MESSAGE_LOOP_RUN,
    LifecyclePhase.MAIN_MESSAGE_LOOP_RUN: LifecyclePhase.PRE_MAIN_MESSAGE_LOOP_RUN,
    LifecyclePhase.POST_MAIN_MESSAGE_LOOP_RUN: LifecyclePhase.MAIN_MESSAGE_LOOP_RUN,
}


class ExitCodeSlot:
    """Integer the main loop run reports its exit code through."""

    def __init__(self, value: int = 0):
        self.value = value

    def __repr__(self) -> str:
        return f"ExitCodeSlot({self.value})"


def default_runtime_factory(config: HostConfig) -> ScriptRuntime:
    return PythonScriptRuntime(entry_script=config.entry_script)


class LifecycleOrchestrator:
    """
    Drives the host lifecycle for one HostContext.

    Binds itself to the context on construction; a second orchestrator for
    the same context is fatal.

    Example:
        context = HostContext.create(config)
        orchestrator = LifecycleOrchestrator(context)
        token = orchestrator.register_destruction_callback(db.close)
    """

    def __init__(self, context: "HostContext", runtime_factory: Optional[RuntimeFactory] = None):
        context.bind_orchestrator(self)
        self.context = context
        self._runtime_factory = runtime_factory or default_runtime_factory

        self.destruction_registry = DestructionRegistry()
        self.host_api = HostAPI(context)
        self.runtime_env: Optional[RuntimeEnvironment] = None
        self.application_context: Optional[ApplicationContext] = None
        self.location_delegate: Optional[LocationServicesDelegate] = None

        self._idle_timer: Optional[RepeatingTimer] = None
        self._memory_subscription: Optional[MemoryPressureSubscription] = None
        self._exit_code: Optional[ExitCodeSlot] = None
        self._last_exit_code = 0
        self._completed: Set[LifecyclePhase] = set()

    # -----------------------------
    # Public API
    # -----------------------------
    def set_exit_code(self, code: int) -> bool:
        """
        Write the exit code of the running main loop.

        Returns:
            False (and changes nothing) outside main_message_loop_run()
        """
        if self._exit_code is None:
            return False
        self._exit_code.value = code
        self._last_exit_code = code
        return True

    def get_exit_code(self) -> int:
        if self._exit_code is not None:
            return self._exit_code.value
        return self._last_exit_code

    def register_destruction_callback(self, callback: Callable[[], None]) -> DestructionToken:
        """Run ``callback`` in post_main_message_loop_run(), in registration order."""
        return self.destruction_registry.register(callback)

    def has_completed(self, phase: LifecyclePhase) -> bool:
        return phase in self._completed

    @property
    def is_running(self) -> bool:
        return self._exit_code is not None

    # -----------------------------
    # Phases
    # -----------------------------
    def pre_early_initialization(self) -> None:
        self._enter_phase(LifecyclePhase.PRE_EARLY_INITIALIZATION)
        self.context.host_process.pre_early_initialization()
        self.context.signal_plumbing.install_child_handler()

    def pre_create_threads(self) -> int:
        self._enter_phase(LifecyclePhase.PRE_CREATE_THREADS)
        result = self.context.host_process.pre_create_threads()
        self.location_delegate = LocationServicesDelegate()
        self.context.host_process.set_location_delegate(self.location_delegate)
        return result

    def post_early_initialization(self) -> None:
        self._enter_phase(LifecyclePhase.POST_EARLY_INITIALIZATION)
        self.context.host_process.post_early_initialization()

    def pre_main_message_loop_run(self) -> None:
        self._enter_phase(LifecyclePhase.PRE_MAIN_MESSAGE_LOOP_RUN)
        config = self.context.config
        host = self.context.host_process
        host.pre_main_message_loop_run()

        runtime_env = RuntimeEnvironment(self._runtime_factory(config))
        self.runtime_env = runtime_env
        runtime_env.enter()
        runtime_env.initialize_bindings()
        if config.debug:
            runtime_env.enable_debugger()

        loop = runtime_env.loop
        host.attach_loop(loop)
        self.context.event_bus.attach_loop(loop)

        env = runtime_env.create_environment()
        runtime_env.bind_host_apis(env, self.host_api)
        runtime_env.load_environment(env)
        runtime_env.attach_event_loop(env)

        self._idle_timer = RepeatingTimer(
            loop, config.idle_interval_seconds, self.context.allocator.release_free_memory
        )
        self._idle_timer.start()

        monitor = self.context.memory_monitor
        monitor.attach_loop(loop)
        self._memory_subscription = monitor.subscribe(self._on_memory_pressure)
        monitor.start()

        user_data_dir = config.resolved_user_data_dir()
        ensure_directory(user_data_dir)
        self.application_context = ApplicationContext.create_default(user_data_dir)

        runtime_env.on_message_loop_created()
        runtime_env.prepare_message_loop()
        runtime_env.run_message_loop()

        application = self.context.application
        application.will_finish_launching()
        application.did_finish_launching()

        self.context.feature_list.initialize(
            enable=config.enable_features,
            disable=config.disable_features,
        )

    def main_message_loop_run(self, result_code: ExitCodeSlot) -> bool:
        """
        Run the host main loop with ``result_code`` bound as the exit code slot.

        Returns:
            Whatever the host process's main_message_loop_run() returns
        """
        self._enter_phase(LifecyclePhase.MAIN_MESSAGE_LOOP_RUN)
        self._exit_code = result_code
        try:
            return self.context.host_process.main_message_loop_run(result_code)
        finally:
            self._last_exit_code = result_code.value
            self._exit_code = None

    def post_main_message_loop_start(self) -> None:
        self._enter_phase(LifecyclePhase.POST_MAIN_MESSAGE_LOOP_START)
        self.context.host_process.post_main_message_loop_start()
        self.context.signal_plumbing.install_shutdown_handlers(
            self.runtime_env.loop, self.context.application.quit
        )

    def post_main_message_loop_run(self) -> None:
        self._enter_phase(LifecyclePhase.POST_MAIN_MESSAGE_LOOP_RUN)
        if self.application_context is not None:
            self.application_context.close()
            self.application_context = None

        self.context.host_process.post_main_message_loop_run()
        self.context.signal_plumbing.uninstall()

        if self._idle_timer is not None:
            self._idle_timer.stop()
            self._idle_timer = None
        if self._memory_subscription is not None:
            self._memory_subscription.cancel()
            self._memory_subscription = None
        self.context.memory_monitor.stop()

        runtime_env = self.runtime_env
        runtime_env.on_message_loop_destroying()
        runtime_env.exit()

        ran = self.destruction_registry.run_all()
        log.info(f"Ran {ran} destruction callback(s)")

        self.context.host_process.start_tear_down()
        # Never closed: see runtime.runtime_environment
        runtime_env.detach()

    # -----------------------------
    # Internals
    # -----------------------------
    def _enter_phase(self, phase: LifecyclePhase) -> None:
        if phase in self._completed:
            fatal(f"Lifecycle phase {phase.name} invoked twice")
        prerequisite = _PREREQUISITES.get(phase)
        if prerequisite is not None and prerequisite not in self._completed:
            fatal(f"Lifecycle phase {phase.name} invoked before {prerequisite.name}")
        self._completed.add(phase)
        log.debug(f"Phase {phase.name}")

    def _on_memory_pressure(self, level: MemoryPressureLevel) -> None:
        if self.context.application.is_shutting_down:
            log.debug(f"Memory pressure {level.name} ignored: shutting down")
            return
        log.info(f"Memory pressure {level.name}: releasing free memory")
        self.context.allocator.release_free_memory()
        if self.runtime_env is not None:
            self.runtime_env.low_memory_notification()
        self.context.event_bus.publish(MemoryPressureEvent(level))
