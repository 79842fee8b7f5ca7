"""
Tests for LifecycleOrchestrator: phase sequencing, exit code slot,
singleton discipline, memory pressure handling and teardown order.
"""

import asyncio

import pytest

from lifecycle.orchestrator import ExitCodeSlot, LifecycleOrchestrator
from models.enums import LifecyclePhase, MemoryPressureLevel
from models.events import EventType
from runtime.runtime_environment import detached_environments
from services.application_context import ApplicationContext


def run_startup(orchestrator):
    orchestrator.pre_early_initialization()
    assert orchestrator.pre_create_threads() == 0
    orchestrator.post_early_initialization()
    orchestrator.pre_main_message_loop_run()


# ---------------------------------------------------------------------------
# Exit code
# ---------------------------------------------------------------------------

def test_set_exit_code_outside_run_phase_is_rejected(host_context, runtime_factory):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    assert orchestrator.set_exit_code(3) is False
    assert orchestrator.get_exit_code() == 0


def test_set_exit_code_during_run_phase(host_context, host_process, runtime_factory):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    observed = {}

    def on_run(slot):
        observed["set"] = orchestrator.set_exit_code(7)
        observed["get"] = orchestrator.get_exit_code()
        observed["slot"] = slot.value

    host_process.on_run = on_run
    run_startup(orchestrator)
    slot = ExitCodeSlot()
    assert orchestrator.main_message_loop_run(slot) is True

    assert observed == {"set": True, "get": 7, "slot": 7}
    # Slot is unbound again after the run
    assert orchestrator.set_exit_code(9) is False
    assert orchestrator.get_exit_code() == 7
    assert slot.value == 7


def test_slot_unbound_when_main_loop_raises(host_context, host_process, runtime_factory):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    def on_run(slot):
        raise RuntimeError("main loop crashed")

    host_process.on_run = on_run
    run_startup(orchestrator)
    with pytest.raises(RuntimeError):
        orchestrator.main_message_loop_run(ExitCodeSlot())

    assert not orchestrator.is_running
    assert orchestrator.set_exit_code(1) is False


# ---------------------------------------------------------------------------
# Singleton / phase discipline
# ---------------------------------------------------------------------------

def test_second_orchestrator_is_fatal(host_context, runtime_factory, fatal_raises):
    first = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    with pytest.raises(fatal_raises):
        LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    assert host_context.orchestrator is first


def test_unbound_context_orchestrator_is_fatal(host_context, fatal_raises):
    with pytest.raises(fatal_raises):
        host_context.orchestrator


def test_phase_invoked_twice_is_fatal(host_context, runtime_factory, fatal_raises):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    orchestrator.pre_early_initialization()

    with pytest.raises(fatal_raises):
        orchestrator.pre_early_initialization()


def test_phase_before_prerequisite_is_fatal(host_context, runtime_factory, fatal_raises):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    with pytest.raises(fatal_raises):
        orchestrator.pre_main_message_loop_run()


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------

def test_early_phases_delegate_to_host(host_context, host_process, runtime_factory):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    orchestrator.pre_early_initialization()
    orchestrator.pre_create_threads()
    orchestrator.post_early_initialization()

    assert host_process.calls == [
        "pre_early_initialization",
        "pre_create_threads",
        "post_early_initialization",
    ]
    assert host_process.location_delegate is orchestrator.location_delegate
    assert host_process.location_delegate.create_access_token_store().load_access_tokens() == {}
    assert orchestrator.has_completed(LifecyclePhase.POST_EARLY_INITIALIZATION)


def test_pre_main_message_loop_run_order(host_context, host_config, runtime_factory, runtime_calls):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    launch_events = []
    host_context.event_bus.subscribe(EventType.WILL_FINISH_LAUNCHING, lambda e: launch_events.append(e.type))
    host_context.event_bus.subscribe(EventType.READY, lambda e: launch_events.append(e.type))

    run_startup(orchestrator)

    assert runtime_calls == [
        "create_isolate",
        "enter",
        "initialize_bindings",
        "create_environment",
        "bind_host_apis",
        "load_environment",
        "set_event_loop_env",
        "on_message_loop_created",
        "prepare_message_loop",
        "run_message_loop",
    ]
    assert launch_events == [EventType.WILL_FINISH_LAUNCHING, EventType.READY]
    assert host_context.application.is_ready
    assert host_context.feature_list.initialized
    assert host_config.resolved_user_data_dir().is_dir()
    assert isinstance(orchestrator.application_context, ApplicationContext)
    assert orchestrator.application_context.path == host_config.resolved_user_data_dir()

    env = orchestrator.runtime_env.environment
    assert env.namespace["host"] is orchestrator.host_api
    assert env.namespace["loop"] is orchestrator.runtime_env.loop
    assert host_context.host_process.loop is orchestrator.runtime_env.loop


def test_debug_config_enables_runtime_debugger(host_context, runtime_factory, runtime_calls):
    host_context.config = host_context.config.model_copy(update={"debug": True})
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    run_startup(orchestrator)

    assert "enable_debugger" in runtime_calls
    assert runtime_calls.index("enable_debugger") == runtime_calls.index("initialize_bindings") + 1
    assert orchestrator.runtime_env.loop.get_debug()


def test_feature_list_initialized_from_config(host_context, runtime_factory):
    host_context.config = host_context.config.model_copy(
        update={"enable_features": ["A", "B"], "disable_features": ["B"]}
    )
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    run_startup(orchestrator)

    assert host_context.feature_list.is_enabled("A")
    assert not host_context.feature_list.is_enabled("B", default=True)


def test_entry_script_receives_host_api(host_context, runtime_factory, tmp_path):
    script = tmp_path / "main.py"
    script.write_text(
        "opened = []\n"
        "def on_ready(event):\n"
        "    opened.append(host.create_window('main'))\n"
        "host.on('ready', on_ready)\n",
        encoding="utf-8",
    )
    host_context.config = host_context.config.model_copy(update={"entry_script": script})
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)

    run_startup(orchestrator)

    env = orchestrator.runtime_env.environment
    assert env.loaded
    assert [w.name for w in host_context.window_registry.windows] == ["main"]


def test_post_main_message_loop_start_installs_shutdown_signals(host_context, host_process, runtime_factory):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    run_startup(orchestrator)

    orchestrator.post_main_message_loop_start()

    assert host_process.calls[-1] == "post_main_message_loop_start"
    assert "SIGTERM" in host_context.signal_plumbing.shutdown_signals
    host_context.signal_plumbing.uninstall()


# ---------------------------------------------------------------------------
# Memory pressure
# ---------------------------------------------------------------------------

def test_memory_pressure_releases_memory(host_context, runtime_factory, runtime_calls):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    run_startup(orchestrator)
    events = []
    host_context.event_bus.subscribe(EventType.MEMORY_PRESSURE, events.append)

    orchestrator._on_memory_pressure(MemoryPressureLevel.CRITICAL)

    assert host_context.allocator.release_count == 1
    assert runtime_calls[-1] == "low_memory_notification"
    assert [e.level for e in events] == [MemoryPressureLevel.CRITICAL]


def test_memory_pressure_delivered_through_monitor(host_context, runtime_factory):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    run_startup(orchestrator)
    loop = orchestrator.runtime_env.loop

    host_context.memory_monitor.notify(MemoryPressureLevel.MODERATE)
    loop.run_until_complete(asyncio.sleep(0))

    assert host_context.allocator.release_count == 1


def test_memory_pressure_ignored_while_shutting_down(host_context, runtime_factory, runtime_calls, monkeypatch):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    run_startup(orchestrator)
    host_context.application.is_shutting_down = True
    debug_messages = []
    monkeypatch.setattr("lifecycle.orchestrator.log.debug", lambda message, **kw: debug_messages.append(message))
    published = []
    host_context.event_bus.subscribe(EventType.MEMORY_PRESSURE, published.append)

    orchestrator._on_memory_pressure(MemoryPressureLevel.CRITICAL)

    assert host_context.allocator.release_count == 0
    assert "low_memory_notification" not in runtime_calls
    assert published == []
    assert debug_messages == ["Memory pressure CRITICAL ignored: shutting down"]


# ---------------------------------------------------------------------------
# Teardown
# ---------------------------------------------------------------------------

def test_post_main_message_loop_run_teardown_order(host_context, host_process, runtime_factory, runtime_calls):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    order = []
    run_startup(orchestrator)
    orchestrator.main_message_loop_run(ExitCodeSlot())
    app_context = orchestrator.application_context

    orchestrator.register_destruction_callback(
        lambda: order.append(("destruction", list(runtime_calls[-2:]), host_process.tear_down_started))
    )
    runtime_calls.clear()

    orchestrator.post_main_message_loop_run()

    assert app_context.closed
    assert orchestrator.application_context is None
    assert runtime_calls == ["on_message_loop_destroying", "exit"]
    # Destruction callbacks run after the runtime exits and before teardown starts
    assert order == [("destruction", ["on_message_loop_destroying", "exit"], False)]
    assert host_process.calls[-2:] == ["post_main_message_loop_run", "start_tear_down"]
    assert host_process.tear_down_started
    assert host_context.memory_monitor.listener_count == 0


def test_runtime_environment_detached_not_closed(host_context, runtime_factory):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    run_startup(orchestrator)
    orchestrator.main_message_loop_run(ExitCodeSlot())

    orchestrator.post_main_message_loop_run()

    runtime_env = orchestrator.runtime_env
    assert runtime_env.detached
    assert runtime_env in detached_environments()
    assert not runtime_env.loop.is_closed()


def test_destruction_token_cancel_before_teardown(host_context, runtime_factory):
    orchestrator = LifecycleOrchestrator(host_context, runtime_factory=runtime_factory)
    calls = []
    orchestrator.register_destruction_callback(lambda: calls.append("kept"))
    token = orchestrator.register_destruction_callback(lambda: calls.append("dropped"))
    token.cancel()

    run_startup(orchestrator)
    orchestrator.main_message_loop_run(ExitCodeSlot())
    orchestrator.post_main_message_loop_run()

    assert calls == ["kept"]
