"""
Scripting runtime adapter.

ScriptRuntime is the narrow contract the lifecycle core consumes; its
internals are not the core's business. PythonScriptRuntime is the default
adapter: it runs host scripts as Python modules inside an isolated
namespace, on an asyncio event loop owned by the execution context.
"""

from __future__ import annotations

import asyncio
import gc
import runpy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.RUNTIME)


@dataclass
class ExecutionContext:
    """Isolated global state of the runtime plus the loop it runs on."""
    loop: asyncio.AbstractEventLoop
    globals: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ScriptEnvironment:
    """Top-level scripting environment created inside an execution context."""
    context: ExecutionContext
    entry_script: Optional[Path] = None
    host_api: Any = None
    loaded: bool = False

    @property
    def namespace(self) -> Dict[str, Any]:
        return self.context.globals


class ScriptRuntime(Protocol):
    """Runtime adapter contract used by RuntimeEnvironment."""

    def create_isolate(self) -> ExecutionContext: ...
    def enter(self, context: ExecutionContext) -> None: ...
    def exit(self, context: ExecutionContext) -> None: ...
    def initialize_bindings(self) -> None: ...
    def enable_debugger(self, context: ExecutionContext) -> None: ...
    def create_environment(self, context: ExecutionContext) -> ScriptEnvironment: ...
    def bind_host_apis(self, env: ScriptEnvironment, host_api: Any) -> None: ...
    def load_environment(self, env: ScriptEnvironment) -> None: ...
    def set_event_loop_env(self, env: ScriptEnvironment) -> None: ...
    def on_message_loop_created(self) -> None: ...
    def on_message_loop_destroying(self) -> None: ...
    def prepare_message_loop(self) -> None: ...
    def run_message_loop(self) -> None: ...
    def low_memory_notification(self) -> None: ...


class PythonScriptRuntime:
    """
    Default runtime: Python entry script + asyncio loop.

    - create_isolate() builds a fresh event loop and an empty namespace
    - enter()/exit() install/remove the context loop as the current loop
    - bind_host_apis() publishes the host API object as ``host``
    - load_environment() executes the entry script into the namespace
    - run_message_loop() pumps one loop iteration so callbacks scheduled by
      the entry script start; the blocking run is the host main loop's job
    - low_memory_notification() forces a full collection

    Example:
        runtime = PythonScriptRuntime(entry_script=Path("app/main.py"))
        context = runtime.create_isolate()
        runtime.enter(context)
        env = runtime.create_environment(context)
        runtime.bind_host_apis(env, host_bindings)
        runtime.load_environment(env)
    """

    ENVIRONMENT_MODULE_NAME = "__host_main__"

    def __init__(self, entry_script: Optional[Path] = None):
        self.entry_script = Path(entry_script).expanduser() if entry_script else None
        self.context: Optional[ExecutionContext] = None
        self.env: Optional[ScriptEnvironment] = None
        self.bindings_initialized = False
        self.message_loop_alive = False
        self.low_memory_notifications = 0

    # -----------------------------
    # Execution context
    # -----------------------------
    def create_isolate(self) -> ExecutionContext:
        if self.context is not None:
            raise RuntimeError("Runtime already owns an execution context")
        self.context = ExecutionContext(
            loop=asyncio.new_event_loop(),
            globals={"__name__": self.ENVIRONMENT_MODULE_NAME},
        )
        log.debug("Execution context created")
        return self.context

    def enter(self, context: ExecutionContext) -> None:
        asyncio.set_event_loop(context.loop)

    def exit(self, context: ExecutionContext) -> None:
        asyncio.set_event_loop(None)

    def initialize_bindings(self) -> None:
        self.bindings_initialized = True

    def enable_debugger(self, context: ExecutionContext) -> None:
        context.loop.set_debug(True)
        log.info("Runtime debugger enabled (asyncio debug mode)")

    # -----------------------------
    # Environment
    # -----------------------------
    def create_environment(self, context: ExecutionContext) -> ScriptEnvironment:
        if not self.bindings_initialized:
            raise RuntimeError("initialize_bindings() must run before create_environment()")
        self.env = ScriptEnvironment(context=context, entry_script=self.entry_script)
        return self.env

    def bind_host_apis(self, env: ScriptEnvironment, host_api: Any) -> None:
        env.host_api = host_api
        env.namespace["host"] = host_api

    def load_environment(self, env: ScriptEnvironment) -> None:
        """
        Execute the entry script into the environment namespace.

        A missing or unset entry script leaves the environment empty.
        Exceptions raised by the script propagate to the caller.
        """
        script = env.entry_script
        if script is None:
            log.info("No entry script configured")
            return
        if not script.is_file():
            log.warn(f"Entry script not found: {script}")
            return

        log.info(f"Loading entry script {script}")
        result = runpy.run_path(
            str(script),
            init_globals=dict(env.namespace),
            run_name=self.ENVIRONMENT_MODULE_NAME,
        )
        env.namespace.update(result)
        env.loaded = True

    def set_event_loop_env(self, env: ScriptEnvironment) -> None:
        env.namespace["loop"] = env.context.loop

    # -----------------------------
    # Message loop
    # -----------------------------
    def on_message_loop_created(self) -> None:
        self.message_loop_alive = True

    def on_message_loop_destroying(self) -> None:
        self.message_loop_alive = False

    def prepare_message_loop(self) -> None:
        if self.context is None:
            raise RuntimeError("No execution context")
        if self.context.loop.is_closed():
            raise RuntimeError("Execution context loop is closed")

    def run_message_loop(self) -> None:
        # One iteration. A loop.stop() from a script callback lands in the same
        # iteration; HostProcess.quit_requested carries the quit to the main loop.
        loop = self.context.loop
        loop.call_soon(loop.stop)
        loop.run_forever()

    def low_memory_notification(self) -> None:
        self.low_memory_notifications += 1
        gc.collect()
