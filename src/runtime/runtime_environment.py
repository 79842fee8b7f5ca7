"""
Runtime environment owned by the lifecycle orchestrator.

Wraps a ScriptRuntime adapter: the execution context, the top-level script
environment and the asyncio loop the runtime runs on.

Teardown contract
-----------------
A RuntimeEnvironment is never closed. At the end of
post_main_message_loop_run() the orchestrator calls detach(), which moves
the instance into _END_OF_PROCESS_GUARD. The guard keeps it referenced until
the interpreter exits and nothing ever runs loop.close(),
loop.shutdown_asyncgens() or loop.shutdown_default_executor() on it:
draining the runtime can wait indefinitely on background work (executor
threads, pending async generators), and every host-owned resource has
already been released through the DestructionRegistry by then. Shutdown is
fast and deterministic instead of clean.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

from runtime.script_runtime import ExecutionContext, ScriptEnvironment, ScriptRuntime
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.RUNTIME)

# Detached environments, alive until interpreter exit (see module docstring)
_END_OF_PROCESS_GUARD: List["RuntimeEnvironment"] = []


class RuntimeEnvironment:
    """
    Execution context + event loop handles of the scripting runtime.

    Created once by the orchestrator in pre_main_message_loop_run().
    """

    def __init__(self, runtime: ScriptRuntime):
        self.runtime = runtime
        self.context: ExecutionContext = runtime.create_isolate()
        self.environment: Optional[ScriptEnvironment] = None
        self.entered = False
        self.detached = False
        log.debug("Runtime environment created")

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self.context.loop

    # -----------------------------
    # Execution context
    # -----------------------------
    def enter(self) -> None:
        self.runtime.enter(self.context)
        self.entered = True

    def exit(self) -> None:
        if not self.entered:
            return
        self.runtime.exit(self.context)
        self.entered = False

    def initialize_bindings(self) -> None:
        self.runtime.initialize_bindings()

    def enable_debugger(self) -> None:
        self.runtime.enable_debugger(self.context)

    # -----------------------------
    # Environment
    # -----------------------------
    def create_environment(self) -> ScriptEnvironment:
        self.environment = self.runtime.create_environment(self.context)
        return self.environment

    def bind_host_apis(self, env: ScriptEnvironment, host_api: Any) -> None:
        self.runtime.bind_host_apis(env, host_api)

    def load_environment(self, env: ScriptEnvironment) -> None:
        self.runtime.load_environment(env)

    def attach_event_loop(self, env: ScriptEnvironment) -> None:
        self.runtime.set_event_loop_env(env)

    # -----------------------------
    # Message loop
    # -----------------------------
    def on_message_loop_created(self) -> None:
        self.runtime.on_message_loop_created()

    def on_message_loop_destroying(self) -> None:
        self.runtime.on_message_loop_destroying()

    def prepare_message_loop(self) -> None:
        self.runtime.prepare_message_loop()

    def run_message_loop(self) -> None:
        self.runtime.run_message_loop()

    def low_memory_notification(self) -> None:
        self.runtime.low_memory_notification()

    # -----------------------------
    # Teardown
    # -----------------------------
    def detach(self) -> None:
        """Hand this environment to the end-of-process guard without closing it."""
        if self.detached:
            return
        self.detached = True
        _END_OF_PROCESS_GUARD.append(self)
        log.debug("Runtime environment detached (left for process exit)")


def detached_environments() -> List[RuntimeEnvironment]:
    """Environments currently held by the end-of-process guard."""
    return list(_END_OF_PROCESS_GUARD)
