"""
Shared fixtures: fake host process, recording runtime, fatal interception.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from models.config import HostConfig, MemoryPressureConfig
from lifecycle.memory_pressure import MemoryPressureMonitor
from runtime import runtime_environment
from runtime.script_runtime import PythonScriptRuntime
from services.host_context import HostContext
from services.host_process import HostProcess
from utils.allocator import Allocator


class FatalError(Exception):
    """Raised instead of os.abort() while fatal() is intercepted"""


class FakeHostProcess(HostProcess):
    """
    Host process that records base-phase calls and never blocks.

    main_message_loop_run() calls ``on_run(slot)`` (if set) and returns,
    instead of running the loop forever.
    """

    def __init__(self, on_run=None, pre_create_threads_result=0):
        super().__init__()
        self.calls = []
        self.on_run = on_run
        self.pre_create_threads_result = pre_create_threads_result

    def pre_early_initialization(self):
        self.calls.append("pre_early_initialization")

    def pre_create_threads(self):
        self.calls.append("pre_create_threads")
        return self.pre_create_threads_result

    def post_early_initialization(self):
        self.calls.append("post_early_initialization")

    def pre_main_message_loop_run(self):
        self.calls.append("pre_main_message_loop_run")

    def post_main_message_loop_start(self):
        self.calls.append("post_main_message_loop_start")

    def post_main_message_loop_run(self):
        self.calls.append("post_main_message_loop_run")

    def start_tear_down(self):
        self.calls.append("start_tear_down")
        super().start_tear_down()

    def main_message_loop_run(self, result_code):
        self.calls.append("main_message_loop_run")
        self.main_loop_running = True
        try:
            if self.on_run is not None:
                self.on_run(result_code)
        finally:
            self.main_loop_running = False
        return True

    def quit_main_loop(self):
        self.calls.append("quit_main_loop")
        self.quit_requested = True


class RecordingRuntime(PythonScriptRuntime):
    """PythonScriptRuntime that records every adapter call, in order."""

    def __init__(self, entry_script=None, calls=None):
        super().__init__(entry_script=entry_script)
        self.calls = calls if calls is not None else []

    def create_isolate(self):
        self.calls.append("create_isolate")
        return super().create_isolate()

    def enter(self, context):
        self.calls.append("enter")
        super().enter(context)

    def exit(self, context):
        self.calls.append("exit")
        super().exit(context)

    def initialize_bindings(self):
        self.calls.append("initialize_bindings")
        super().initialize_bindings()

    def enable_debugger(self, context):
        self.calls.append("enable_debugger")
        super().enable_debugger(context)

    def create_environment(self, context):
        self.calls.append("create_environment")
        return super().create_environment(context)

    def bind_host_apis(self, env, host_api):
        self.calls.append("bind_host_apis")
        super().bind_host_apis(env, host_api)

    def load_environment(self, env):
        self.calls.append("load_environment")
        super().load_environment(env)

    def set_event_loop_env(self, env):
        self.calls.append("set_event_loop_env")
        super().set_event_loop_env(env)

    def on_message_loop_created(self):
        self.calls.append("on_message_loop_created")
        super().on_message_loop_created()

    def on_message_loop_destroying(self):
        self.calls.append("on_message_loop_destroying")
        super().on_message_loop_destroying()

    def prepare_message_loop(self):
        self.calls.append("prepare_message_loop")
        super().prepare_message_loop()

    def run_message_loop(self):
        self.calls.append("run_message_loop")
        super().run_message_loop()

    def low_memory_notification(self):
        self.calls.append("low_memory_notification")
        super().low_memory_notification()


@pytest.fixture
def fatal_raises(monkeypatch):
    """Turn fatal() into FatalError so invariant violations are testable."""
    def raise_fatal(message, **details):
        raise FatalError(message)

    monkeypatch.setattr("lifecycle.orchestrator.fatal", raise_fatal)
    monkeypatch.setattr("services.host_context.fatal", raise_fatal)
    return FatalError


@pytest.fixture
def host_config(tmp_path):
    return HostConfig(
        app_name="AtriumTest",
        user_data_dir=tmp_path / "user-data",
        memory_pressure=MemoryPressureConfig(enabled=False),
        use_colors=False,
    )


@pytest.fixture
def host_process():
    return FakeHostProcess()


@pytest.fixture
def host_context(host_config, host_process):
    return HostContext.create(
        host_config,
        host_process=host_process,
        memory_monitor=MemoryPressureMonitor(),
        allocator=Allocator(use_malloc_trim=False),
    )


@pytest.fixture
def runtime_calls():
    return []


@pytest.fixture
def runtime_factory(runtime_calls):
    created = []

    def factory(config):
        runtime = RecordingRuntime(entry_script=config.entry_script, calls=runtime_calls)
        created.append(runtime)
        return runtime

    factory.created = created
    yield factory
    for runtime in created:
        if runtime.context is not None and not runtime.context.loop.is_closed():
            runtime.context.loop.close()
    asyncio.set_event_loop(None)


@pytest.fixture(autouse=True)
def close_detached_loops():
    """Detached environments are never closed by the host; close them after each test."""
    yield
    guard = runtime_environment._END_OF_PROCESS_GUARD
    for env in guard:
        if not env.loop.is_closed():
            env.loop.close()
    guard.clear()
